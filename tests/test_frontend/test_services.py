"""Tests for the remote database, blob store and HTTP services."""
import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import Mock, MagicMock, patch

from shared.enums import QuestionType
from shared.schemas import FormSubmission, FormTemplate, WorkSession
from src.inspection_app.services.api_service import APIService
from src.inspection_app.services.remote_db import RemoteDatabase
from src.inspection_app.services.blob_store import BlobStore
from src.inspection_app.services.errors import (
    FetchError, BlobTooLargeError, SubmissionError, TimesheetWriteError
)


def _response(status_code=200, json_data=None):
    response = Mock()
    response.status_code = status_code
    response.reason = 'reason'
    response.json.return_value = json_data
    return response


class TestAPIService:
    """HTTP retry behaviour."""

    def test_url_for(self):
        api = APIService('https://db.example.com/')
        assert api.url_for('/forms/') == 'https://db.example.com/forms.json'
        assert api.url_for('completedForms/a/b') == 'https://db.example.com/completedForms/a/b.json'

    def test_auth_token_added_to_params(self):
        session = Mock()
        session.request.return_value = _response()
        api = APIService('https://db.example.com', auth_token='secret', session=session)

        api.get('forms')

        kwargs = session.request.call_args[1]
        assert kwargs['params'] == {'auth': 'secret'}
        assert kwargs['timeout'] == 10.0

    def test_client_error_not_retried(self):
        session = Mock()
        session.request.return_value = _response(404)
        api = APIService(session=session, retry_delay=0)

        assert api.get('forms').status_code == 404
        assert session.request.call_count == 1

    @patch('src.inspection_app.services.api_service.time.sleep')
    def test_server_error_retried(self, mock_sleep):
        session = Mock()
        session.request.side_effect = [_response(503), _response(200)]
        api = APIService(session=session, max_retries=3)

        assert api.get('forms').status_code == 200
        assert session.request.call_count == 2
        mock_sleep.assert_called_once()

    @patch('src.inspection_app.services.api_service.time.sleep')
    def test_server_error_exhausted_returns_last_response(self, mock_sleep):
        session = Mock()
        session.request.return_value = _response(500)
        api = APIService(session=session, max_retries=2)

        assert api.get('forms').status_code == 500
        assert session.request.call_count == 2

    @patch('src.inspection_app.services.api_service.time.sleep')
    def test_connection_error_raised_after_retries(self, mock_sleep):
        session = Mock()
        session.request.side_effect = requests.exceptions.ConnectionError("down")
        api = APIService(session=session, max_retries=3)

        with pytest.raises(requests.exceptions.ConnectionError):
            api.put('x', json={})
        assert session.request.call_count == 3


class TestRemoteDatabase:
    """Template parsing and submission writes."""

    FORMS = {
        'formA': {
            'name': 'Excavator',
            'iconName': 'excavator.png',
            'questions': [
                {'id': 'q1', 'text': 'Tracks OK?', 'type': 'ok_not_ok_na'},
                {'id': 'q2', 'text': 'Notes', 'type': 'input'},
                {'id': 'q3', 'text': 'Photo', 'type': 'photo'},
                {'text': 'No id', 'type': 'input'},
            ],
        },
        'formB': {'name': 'Hidden', 'iconName': 'h.png', 'questions': [], 'isDisplayed': False},
        'formC': {'name': 'No icon', 'questions': []},
    }

    def test_fetch_forms(self):
        api = Mock()
        api.get.return_value = _response(json_data=self.FORMS)
        db = RemoteDatabase(api)

        forms = db.fetch_forms()

        api.get.assert_called_once_with('forms')
        assert [f.id for f in forms] == ['formA']
        assert [q.id for q in forms[0].questions] == ['q1', 'q2']
        assert forms[0].questions[0].type == QuestionType.OK_NOT_OK_NA

    def test_fetch_forms_include_hidden(self):
        api = Mock()
        api.get.return_value = _response(json_data=self.FORMS)
        forms = RemoteDatabase(api).fetch_forms(include_hidden=True)
        assert [f.id for f in forms] == ['formA', 'formB']

    def test_fetch_forms_array_node(self):
        api = Mock()
        api.get.return_value = _response(json_data=[None, self.FORMS['formA']])
        forms = RemoteDatabase(api).fetch_forms()
        assert [f.id for f in forms] == ['1']

    def test_fetch_forms_empty_node(self):
        api = Mock()
        api.get.return_value = _response(json_data=None)
        assert RemoteDatabase(api).fetch_forms() == []

    def test_fetch_error_status(self):
        api = Mock()
        api.get.return_value = _response(401)
        with pytest.raises(FetchError):
            RemoteDatabase(api).fetch_forms()

    def test_fetch_connection_error(self):
        api = Mock()
        api.get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(FetchError):
            RemoteDatabase(api).fetch_translations('en')

    def test_fetch_invalid_json(self):
        api = Mock()
        response = _response()
        response.json.side_effect = ValueError("bad json")
        api.get.return_value = response
        with pytest.raises(FetchError):
            RemoteDatabase(api).fetch_forms()

    def test_fetch_timesheets_newest_first(self):
        api = Mock()
        api.get.return_value = _response(json_data={
            't1': {'createdAt': 100, 'startDateString': '01/01', 'originalPath': 'a.pdf'},
            't2': {'createdAt': 300},
            't3': {'createdAt': 200},
        })
        timesheets = RemoteDatabase(api).fetch_timesheets('uid-1')
        api.get.assert_called_once_with('userTimesheets/uid-1')
        assert [t.id for t in timesheets] == ['t2', 't3', 't1']
        assert timesheets[2].original_path == 'a.pdf'
        assert timesheets[0].end_date_string == ''

    @pytest.mark.parametrize('user_id', ['', '/', '.#'])
    def test_fetch_timesheets_requires_user(self, user_id):
        api = Mock()
        with pytest.raises(ValueError):
            RemoteDatabase(api).fetch_timesheets(user_id)
        api.get.assert_not_called()

    def test_fetch_work_sessions_skips_notes(self):
        api = Mock()
        api.get.return_value = _response(json_data={
            's1': {'startTime': 1000, 'startLocation': 'Depot', 'stopTime': 2000},
            's2': {'startTime': 5000, 'startLocation': 'Yard', 'hireEquipmentIncluded': True},
            'note1': {'text': 'Left early', 'date': 1500},
        })

        sessions = RemoteDatabase(api).fetch_work_sessions('acme', 'uid-1')

        api.get.assert_called_once_with('customers/acme/timesheets/uid-1')
        assert [s.id for s in sessions] == ['s2', 's1']
        assert sessions[0].is_running
        assert not sessions[1].is_running

    def test_fetch_work_sessions_requires_parent(self):
        api = Mock()
        with pytest.raises(ValueError):
            RemoteDatabase(api).fetch_work_sessions('', 'uid-1')
        api.get.assert_not_called()

    def _work_session(self, **kwargs):
        return WorkSession(id='s1', start_time=1725373500000, start_location='Depot', **kwargs)

    def test_save_work_session(self):
        api = Mock()
        api.put.return_value = _response(200)

        path = RemoteDatabase(api).save_work_session('acme', 'uid-1', self._work_session())

        assert path == 'customers/acme/timesheets/uid-1/s1'
        assert api.put.call_args[1]['json'] == {
            'date': 1725373500000,
            'startTime': 1725373500000,
            'startLocation': 'Depot',
            'hireEquipmentIncluded': False,
        }

    def test_stop_work_session_merges(self):
        api = Mock()
        api.patch.return_value = _response(200)
        session = self._work_session(stop_time=1725400000000, stop_location='Yard')

        RemoteDatabase(api).stop_work_session('acme', 'uid-1', session)

        api.put.assert_not_called()
        args, kwargs = api.patch.call_args
        assert args == ('customers/acme/timesheets/uid-1/s1',)
        assert kwargs['json'] == {'stopTime': 1725400000000, 'stopLocation': 'Yard'}

    def test_work_session_write_error(self):
        api = Mock()
        api.patch.return_value = _response(503)
        with pytest.raises(TimesheetWriteError) as exc_info:
            RemoteDatabase(api).stop_work_session('acme', 'uid-1', self._work_session(stop_time=1))
        assert exc_info.value.retryable is True

    def test_work_session_connection_error(self):
        api = Mock()
        api.put.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(TimesheetWriteError):
            RemoteDatabase(api).save_work_session('acme', 'uid-1', self._work_session())

    def _submission(self):
        form = FormTemplate(id='formA', name='Excavator', icon_name='e.png')
        return FormSubmission(
            form_id=form.id, form_name=form.name, user_parent='acme', user_id='uid-1',
            submitted_at=datetime(2024, 9, 3, 14, 25, tzinfo=timezone.utc),
            answers={'q1': {'questionType': 'OkNotOkNa', 'questionText': 'Tracks OK?', 'answer': 'OK'}}
        )

    def test_save_submission(self):
        api = Mock()
        api.put.return_value = _response(200)
        path = RemoteDatabase(api).save_submission(self._submission())

        assert path == 'completedForms/acme/Excavator/20240903-142500/uid-1'
        args, kwargs = api.put.call_args
        assert args == (path,)
        assert kwargs['json']['answers']['q1']['answer'] == 'OK'

    def test_save_submission_error_status(self):
        api = Mock()
        api.put.return_value = _response(500)
        with pytest.raises(SubmissionError) as exc_info:
            RemoteDatabase(api).save_submission(self._submission())
        assert exc_info.value.retryable is True

    def test_save_submission_connection_error(self):
        api = Mock()
        api.put.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(SubmissionError):
            RemoteDatabase(api).save_submission(self._submission())


class TestBlobStore:
    """Size-capped downloads."""

    def _session(self, status_code=200, chunks=(), headers=None):
        response = MagicMock()
        response.status_code = status_code
        response.headers = headers or {}
        response.iter_content.return_value = list(chunks)
        response.__enter__.return_value = response
        response.__exit__.return_value = False
        session = Mock()
        session.get.return_value = response
        return session

    def test_url_for_encodes_path(self):
        blob = BlobStore('https://storage.example.com/', 'bucket', session=Mock())
        assert blob.url_for('icons/a b.png') == 'https://storage.example.com/v0/b/bucket/o/icons%2Fa%20b.png?alt=media'

    def test_fetch_bytes(self):
        session = self._session(chunks=[b'abc', b'def'])
        blob = BlobStore('https://s', 'b', session=session)
        assert blob.fetch_bytes('reports/r.pdf', max_bytes=10) == b'abcdef'
        assert session.get.call_args[1]['stream'] is True

    def test_fetch_icon_path(self):
        session = self._session(chunks=[b'x'])
        blob = BlobStore('https://s', 'b', session=session)
        blob.fetch_icon('e.png', 10)
        assert 'icons%2Fe.png' in session.get.call_args[0][0]

    def test_declared_size_over_cap(self):
        session = self._session(chunks=[b'x'], headers={'Content-Length': '2048'})
        blob = BlobStore('https://s', 'b', session=session)
        with pytest.raises(BlobTooLargeError):
            blob.fetch_bytes('icons/big.png', max_bytes=1024)

    def test_streamed_size_over_cap(self):
        session = self._session(chunks=[b'a' * 600, b'b' * 600])
        blob = BlobStore('https://s', 'b', session=session)
        with pytest.raises(BlobTooLargeError) as exc_info:
            blob.fetch_bytes('icons/big.png', max_bytes=1024)
        assert isinstance(exc_info.value, FetchError)

    def test_error_status(self):
        blob = BlobStore('https://s', 'b', session=self._session(status_code=404))
        with pytest.raises(FetchError):
            blob.fetch_bytes('icons/missing.png', max_bytes=1024)

    def test_connection_error(self):
        session = Mock()
        session.get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(FetchError):
            BlobStore('https://s', 'b', session=session).fetch_bytes('x', 10)
