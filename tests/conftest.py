"""Pytest configuration and fixtures for Field Inspection tests."""
import concurrent.futures
import pytest
from unittest.mock import MagicMock, Mock, patch

from shared.enums import QuestionType
from shared.schemas import Question, FormTemplate
from src.inspection_app.config_manager import ConfigManager
from src.inspection_app.form_store import FormAnswerStore
from src.inspection_app.state import SessionState


def _make_widget(*args, **kwargs):
    """Stand-in for a Toga widget that remembers its constructor values."""
    widget = MagicMock()
    widget.text = args[0] if args else kwargs.get('text')
    widget.value = kwargs.get('value')
    widget.placeholder = kwargs.get('placeholder')
    widget.on_change = kwargs.get('on_change')
    widget.on_press = kwargs.get('on_press')
    widget.children = list(kwargs.get('children') or [])
    widget.items = list(kwargs.get('items') or [])
    return widget


@pytest.fixture
def fake_toga():
    """Patch the toga module used by the UI builders with distinct mock widgets."""
    mock_toga = MagicMock()
    for name in ('Label', 'TextInput', 'MultilineTextInput', 'Button', 'Switch',
                 'Box', 'ImageView', 'Image', 'ScrollContainer', 'Selection'):
        getattr(mock_toga, name).side_effect = _make_widget
    with patch('src.inspection_app.ui.ui_builder.toga', mock_toga), \
            patch('src.inspection_app.ui.form_ui.toga', mock_toga):
        yield mock_toga


@pytest.fixture
def sample_questions():
    return [
        Question(id='q1', text='Brakes working?', type=QuestionType.OK_NOT_OK_NA),
        Question(id='q2', text='Site condition', type=QuestionType.INPUT),
    ]


@pytest.fixture
def store(sample_questions):
    return FormAnswerStore.from_questions(sample_questions)


@pytest.fixture
def sample_form(sample_questions):
    return FormTemplate(id='form1', name='Daily Plant Check', icon_name='excavator.png', questions=sample_questions)


@pytest.fixture
def config(tmp_path):
    return ConfigManager(
        icon_cache_dir=str(tmp_path / 'icons'),
        user_parent='acme',
        user_id='uid-1',
        include_header_questions=False
    )


class ImmediateExecutor:
    """Executor that runs submitted work at once on the calling thread."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args, **kwargs):
        self.submitted.append(fn)
        future = concurrent.futures.Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True, cancel_futures=False):
        pass


def immediate_loop():
    """Event loop stand-in that runs ``call_soon_threadsafe`` callbacks inline."""
    loop = Mock()
    loop.call_soon_threadsafe.side_effect = lambda callback, *args: callback(*args)
    return loop


class MockApp:
    """Mock app class for testing handlers."""

    def __init__(self, config):
        self.config = config
        self.state = SessionState()
        self.remote_db = Mock()
        self.blob_store = Mock()
        self.icon_cache = Mock()
        self.ui = Mock()
        self.translations = None
        self.executor = ImmediateExecutor()
        self.loop = immediate_loop()
        self.paths = Mock()


@pytest.fixture
def mock_app(config):
    return MockApp(config)
