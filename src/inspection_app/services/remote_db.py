"""Remote document database client for form templates and submissions."""
import logging
import requests

from shared.schemas import FormTemplate, Timesheet, WorkSession
from shared.utils import sanitize_storage_key
from .errors import FetchError, SubmissionError, TimesheetWriteError


def _children(value):
    """Iterate (key, child) pairs of a database node.

    Nodes with sequential integer keys come back from the REST API as JSON
    arrays, with ``null`` for missing indices.
    """
    if isinstance(value, dict):
        return list(value.items())
    if isinstance(value, list):
        return [(str(i), child) for i, child in enumerate(value) if child is not None]
    return []


def _require_key(name, value):
    """Sanitize one path segment, refusing values that would address the parent node."""
    key = sanitize_storage_key(value).replace('/', '')
    if not key:
        raise ValueError(f"{name} is required")
    return key


class RemoteDatabase:
    """Reads templates, translations and timesheets; writes completed forms and work sessions."""

    FORMS_PATH = 'forms'
    TRANSLATIONS_PATH = 'translations'
    TIMESHEETS_PATH = 'userTimesheets'

    def __init__(self, api_service):
        self.api_service = api_service
        self.logger = logging.getLogger(self.__class__.__name__)

    def _read(self, path):
        """GET a database path and decode its JSON value.

        Raises:
            FetchError: On connection failure, error status or bad JSON
        """
        try:
            response = self.api_service.get(path)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to read '{path}': {e}")
            raise FetchError(f"Failed to read '{path}': {e}") from e

        if response.status_code >= 400:
            self.logger.error(f"Failed to read '{path}': HTTP {response.status_code}")
            raise FetchError(f"Failed to read '{path}': HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            self.logger.error(f"Invalid JSON at '{path}': {e}")
            raise FetchError(f"Invalid JSON at '{path}'") from e

    def fetch_forms(self, include_hidden=False):
        """Fetch all form templates.

        Args:
            include_hidden: Also return forms flagged ``isDisplayed: false``

        Returns:
            List of FormTemplate in database key order
        """
        forms = []
        for form_id, record in _children(self._read(self.FORMS_PATH)):
            form = FormTemplate.from_record(form_id, record)
            if form is None:
                continue
            if form.is_displayed or include_hidden:
                forms.append(form)
        self.logger.info(f"Fetched {len(forms)} forms")
        return forms

    def fetch_translations(self, language):
        """Fetch the translation tree for a language, or None if absent."""
        value = self._read(f"{self.TRANSLATIONS_PATH}/{language}")
        return value if isinstance(value, dict) else None

    def fetch_timesheets(self, user_id):
        """Fetch a user's timesheet exports, newest first.

        Raises:
            ValueError: If ``user_id`` is empty; the parent node holds every user's exports
        """
        user_key = _require_key('user_id', user_id)
        value = self._read(f"{self.TIMESHEETS_PATH}/{user_key}")
        timesheets = [Timesheet.from_record(key, record) for key, record in _children(value)]
        timesheets.sort(key=lambda t: t.created_at, reverse=True)
        return timesheets

    def _sessions_path(self, user_parent, user_id):
        return '/'.join([
            'customers',
            _require_key('user_parent', user_parent),
            'timesheets',
            _require_key('user_id', user_id),
        ])

    def fetch_work_sessions(self, user_parent, user_id):
        """Fetch a user's clock-on sessions, newest first.

        Notes stored beside the sessions are skipped.
        """
        value = self._read(self._sessions_path(user_parent, user_id))
        sessions = []
        for key, record in _children(value):
            session = WorkSession.from_record(key, record)
            if session is not None:
                sessions.append(session)
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions

    def _write(self, method, path, payload, error_class):
        """PUT or PATCH ``payload`` at ``path``, raising ``error_class`` on failure."""
        try:
            response = method(path, json=payload)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to write '{path}': {e}")
            raise error_class(f"Failed to write '{path}': {e}") from e

        if response.status_code >= 400:
            self.logger.error(f"Failed to write '{path}': HTTP {response.status_code}")
            raise error_class(f"Failed to write '{path}': HTTP {response.status_code}")
        return path

    def save_work_session(self, user_parent, user_id, session):
        """Store a newly started session.

        Raises:
            TimesheetWriteError: If the write fails
        """
        path = f"{self._sessions_path(user_parent, user_id)}/{_require_key('session id', session.id)}"
        self._write(self.api_service.put, path, session.to_record(), TimesheetWriteError)
        self.logger.info(f"Started work session {session.id}")
        return path

    def stop_work_session(self, user_parent, user_id, session):
        """Merge the stop fields of ``session`` into its stored record.

        Raises:
            TimesheetWriteError: If the write fails
        """
        path = f"{self._sessions_path(user_parent, user_id)}/{_require_key('session id', session.id)}"
        self._write(self.api_service.patch, path, session.stop_record(), TimesheetWriteError)
        self.logger.info(f"Stopped work session {session.id}")
        return path

    def save_submission(self, submission):
        """Write a completed form as a new record.

        Returns:
            The database path the record was written to

        Raises:
            SubmissionError: If the write fails; the submission can be retried
        """
        path = submission.storage_path
        self._write(self.api_service.put, path, submission.to_record(), SubmissionError)
        self.logger.info(f"Saved submission for form '{submission.form_name}' to '{path}'")
        return path
