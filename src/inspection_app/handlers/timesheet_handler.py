"""Timesheet handlers: clocking on and off, listing and exporting timesheets."""
import datetime
import functools
import logging
import os
import uuid
from pathlib import Path

from shared.schemas import WorkSession, UNKNOWN_LOCATION
from shared.utils import now, to_millis, end_of_day
from ..services.errors import FetchError, ExportWriteError, TimesheetWriteError
from .background import run_in_background

# Stop location written when a forgotten session is closed automatically
AUTO_CLOSE_LOCATION = 'None'


class TimesheetHandler:
    """Records work sessions and manages the user's timesheet exports."""

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger(self.__class__.__name__)
        self._clock_busy = False

    def _t(self, key, default):
        translations = getattr(self.app, 'translations', None)
        if translations is None:
            return default
        return translations.get(key, default)

    def _status(self, text):
        self.app.ui.set_status(text)

    def _show(self):
        state = self.app.state
        self.app.ui.show_timesheets(state.timesheets, state.active_work_session)

    def load_timesheets(self, widget=None):
        """Fetch exports and work sessions in the background, then show the timesheet screen.

        Returns:
            The future of the fetch, or None when no user is configured
        """
        state = self.app.state
        config = self.app.config
        if not config.user_id:
            self.logger.warning("Cannot load timesheets: user_id not configured")
            state.timesheets = []
            state.work_sessions = []
            self._status(self._t('status.no_user', 'No user is configured for timesheets.'))
            self._show()
            return None

        self._status(self._t('status.loading_timesheets', 'Loading timesheets...'))
        return run_in_background(
            self.app, self._on_timesheets_loaded, self._fetch_all, config.user_parent, config.user_id
        )

    def _fetch_all(self, user_parent, user_id):
        timesheets = self.app.remote_db.fetch_timesheets(user_id)
        sessions = []
        if user_parent:
            sessions = self.app.remote_db.fetch_work_sessions(user_parent, user_id)
            sessions = self.close_stale_session(user_parent, user_id, sessions)
        return timesheets, sessions

    def _on_timesheets_loaded(self, future):
        state = self.app.state
        try:
            state.timesheets, state.work_sessions = future.result()
        except FetchError as e:
            self.logger.warning(f"Could not load timesheets: {e}")
            state.timesheets = []
            state.work_sessions = []
            self._status(self._t('status.timesheets_failed', 'Could not load timesheets.'))
        else:
            self._status(self._t('status.timesheets_loaded', 'Timesheets up to date.'))
        self._show()
        return state.timesheets

    def close_stale_session(self, user_parent, user_id, sessions, today=None):
        """Stop a session left running from an earlier day at 23:59:59 of its start day.

        Only the newest session is considered. A failed write leaves it running.

        Returns:
            ``sessions`` with the newest entry replaced when it was closed
        """
        if not sessions or not sessions[0].is_running:
            return sessions
        latest = sessions[0]
        today = today or datetime.date.today()
        if latest.started_at.date() >= today:
            return sessions

        closed = latest.model_copy(update={
            'stop_time': to_millis(end_of_day(latest.started_at)),
            'stop_location': AUTO_CLOSE_LOCATION,
        })
        try:
            self.app.remote_db.stop_work_session(user_parent, user_id, closed)
        except TimesheetWriteError as e:
            self.logger.warning(f"Could not close session {latest.id} from {latest.started_at:%Y-%m-%d}: {e}")
            return sessions
        self.logger.info(f"Closed session {latest.id} left running since {latest.started_at:%Y-%m-%d}")
        return [closed] + sessions[1:]

    def _can_clock(self):
        config = self.app.config
        if not config.user_parent or not config.user_id:
            self.logger.error("Cannot record work sessions: user_parent/user_id not configured")
            self._status(self._t('status.no_user', 'No user is configured for timesheets.'))
            return False
        if self._clock_busy:
            self.logger.debug("Clock change already in progress")
            return False
        return True

    def clock_on(self, hire_equipment_included=False, equipment_type=None, start_location=None):
        """Start a work session.

        Returns:
            The future of the write, or None if nothing was sent
        """
        state = self.app.state
        if not self._can_clock():
            return None
        if state.active_work_session is not None:
            self._status(self._t('timesheets.already_on', 'You are already clocked on.'))
            return None

        started = now()
        session = WorkSession(
            id=uuid.uuid4().hex,
            start_time=to_millis(started),
            start_location=start_location or UNKNOWN_LOCATION,
            hire_equipment_included=bool(hire_equipment_included),
            equipment_type=(equipment_type or None) if hire_equipment_included else None
        )
        config = self.app.config
        self._clock_busy = True
        self._status(self._t('timesheets.clocking_on', 'Clocking on...'))
        return run_in_background(
            self.app,
            functools.partial(self._on_clocked_on, session),
            self.app.remote_db.save_work_session,
            config.user_parent, config.user_id, session
        )

    def _on_clocked_on(self, session, future):
        self._clock_busy = False
        try:
            future.result()
        except TimesheetWriteError as e:
            self.logger.warning(f"Clock on failed: {e}")
            self._status(self._t('timesheets.clock_on_failed', 'Could not clock on, please try again.'))
            return False

        self.app.state.work_sessions.insert(0, session)
        self._status(f"{self._t('timesheets.clocked_on', 'Clocked on at')} {session.started_at:%H:%M}")
        self._show()
        return True

    def clock_off(self, had_lunch_break=False, length_of_lunch='', length_of_hire='', stop_location=None):
        """Stop the running work session.

        Returns:
            The future of the write, or None if nothing was sent
        """
        active = self.app.state.active_work_session
        if not self._can_clock():
            return None
        if active is None:
            self._status(self._t('timesheets.not_on', 'You are not clocked on.'))
            return None

        stopped = active.model_copy(update={
            'stop_time': to_millis(now()),
            'stop_location': stop_location or UNKNOWN_LOCATION,
            'had_lunch_break': bool(had_lunch_break),
            'length_of_lunch': (length_of_lunch or '') if had_lunch_break else '',
            'length_of_hire': (length_of_hire or '') if active.hire_equipment_included else '',
        })
        config = self.app.config
        self._clock_busy = True
        self._status(self._t('timesheets.clocking_off', 'Clocking off...'))
        return run_in_background(
            self.app,
            functools.partial(self._on_clocked_off, stopped),
            self.app.remote_db.stop_work_session,
            config.user_parent, config.user_id, stopped
        )

    def _on_clocked_off(self, session, future):
        self._clock_busy = False
        try:
            future.result()
        except TimesheetWriteError as e:
            self.logger.warning(f"Clock off failed: {e}")
            self._status(self._t('timesheets.clock_off_failed', 'Could not clock off, please try again.'))
            return False

        state = self.app.state
        state.work_sessions = [session if s.id == session.id else s for s in state.work_sessions]
        self._status(self._t('timesheets.clocked_off', 'Clocked off.'))
        self._show()
        return True

    def export(self, timesheet, dest_dir):
        """Download a timesheet's file into ``dest_dir``.

        Returns:
            Path of the written file

        Raises:
            FetchError: If the file cannot be downloaded
            ExportWriteError: If it cannot be written locally
        """
        if not timesheet.original_path:
            raise FetchError(f"Timesheet {timesheet.id} has no stored file")

        data = self.app.blob_store.fetch_bytes(timesheet.original_path, self.app.config.report_max_bytes)

        filename = os.path.basename(timesheet.original_path.rstrip('/')) or f"timesheet_{timesheet.id}"
        dest = Path(dest_dir) / filename
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)
        except OSError as e:
            self.logger.error(f"Failed to write export {dest}: {e}")
            raise ExportWriteError(f"Failed to write {dest}: {e}") from e

        self.logger.info(f"Exported timesheet {timesheet.id} to {dest}")
        return dest

    def export_timesheet(self, timesheet):
        """UI entry point: export into the app's data directory in the background."""
        dest_dir = Path(self.app.paths.data) / 'exports'
        self._status(self._t('timesheets.exporting', 'Exporting...'))
        return run_in_background(self.app, self._on_exported, self.export, timesheet, dest_dir)

    def _on_exported(self, future):
        try:
            dest = future.result()
        except (FetchError, ExportWriteError) as e:
            self._status(f"Export failed, please try again: {e}")
            return None
        self._status(f"Saved {dest.name}")
        return dest
