"""Form session handlers for InspectionApp."""
import functools
import logging

from shared.schemas import FormSubmission, HEADER_QUESTIONS
from ..form_store import FormAnswerStore
from ..services.errors import FetchError, SubmissionError
from ..ui.question_views import create_question_view
from .background import run_in_background


class FormHandler:
    """Runs form sessions: loading templates, filling out and submitting.

    Network calls run on the app executor; their results are applied to
    ``app.state`` and the UI from callbacks on the event loop.
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger(self.__class__.__name__)
        self._icons_in_flight = set()
        self._retry_running = False

    def _t(self, key, default):
        translations = getattr(self.app, 'translations', None)
        if translations is None:
            return default
        return translations.get(key, default)

    def _status(self, text):
        self.app.ui.set_status(text)

    def load_forms(self, widget=None):
        """Fetch the form list in the background; the grid is shown when it arrives."""
        self._status(self._t('status.loading_forms', 'Loading forms...'))
        return run_in_background(self.app, self._on_forms_loaded, self.app.remote_db.fetch_forms)

    def _on_forms_loaded(self, future):
        state = self.app.state
        try:
            state.forms = future.result()
        except FetchError as e:
            self.logger.warning(f"Could not load forms: {e}")
            state.forms = []
            self._status(self._t('status.forms_failed', 'Could not load forms. Check your connection.'))
        else:
            self._status(self._t('status.forms_loaded', 'Select a form'))

        # An open form stays on screen; the new list shows once it is closed
        if not state.in_session:
            self.app.ui.show_form_grid(state.forms)
        self.load_icons(state.forms)
        return state.forms

    def load_icons(self, forms):
        """Start one background fetch per icon name not already shown or loading."""
        for icon_name in dict.fromkeys(form.icon_name for form in forms):
            cached = self.app.state.icon_data.get(icon_name)
            if cached is not None:
                self.app.ui.set_form_icon(icon_name, cached)
                continue
            if icon_name in self._icons_in_flight:
                continue
            self._icons_in_flight.add(icon_name)
            self.app.icon_cache.fetch_icon_async(
                icon_name, self.app.executor, self.app.loop, self.on_icon_loaded
            )

    def on_icon_loaded(self, icon_name, data):
        """Icon fetch completion, delivered on the event loop."""
        self._icons_in_flight.discard(icon_name)
        if data is None:
            self.logger.debug(f"No icon for {icon_name}, keeping placeholder")
            return
        self.app.state.icon_data[icon_name] = data
        self.app.ui.set_form_icon(icon_name, data)

    def build_questions(self, form):
        """Header questions (when enabled) followed by the form's own questions."""
        questions = list(HEADER_QUESTIONS) if self.app.config.include_header_questions else []
        seen = {q.id for q in questions}
        for question in form.questions:
            if question.id in seen:
                self.logger.warning(f"Form {form.id} repeats question id '{question.id}', skipping it")
                continue
            seen.add(question.id)
            questions.append(question)
        return questions

    def build_views(self, store):
        """One input view per record in ``store``, labelled from the current translations."""
        return [
            create_question_view(store, record, self.app.translations, self.app.config)
            for record in store.snapshot()
        ]

    def show_current_form(self):
        """Rebuild the open form's views from the live store and show them."""
        state = self.app.state
        state.question_views = self.build_views(state.answer_store)
        self.app.ui.show_form(state.current_form, state.question_views)

    def start_form(self, form):
        """Start a session for ``form`` and show its questions."""
        store = FormAnswerStore.from_questions(self.build_questions(form))
        self.app.state.start_session(form, store)
        self.show_current_form()
        self.logger.info(f"Started form '{form.name}' with {len(store)} questions")
        return store

    def submit_form(self, widget=None):
        """Validate the active session and send it in the background.

        Returns:
            The future of the write, or None if the form was not sent
        """
        state = self.app.state
        if not state.in_session:
            self.logger.warning("Submit pressed with no active form")
            return None

        missing = state.answer_store.validate()
        if missing:
            self.logger.info(f"Form incomplete, unanswered: {', '.join(missing)}")
            self._status(self._t('status.incomplete', 'Please answer all questions before submitting.'))
            return None

        config = self.app.config
        if not config.user_parent or not config.user_id:
            self.logger.error("Cannot submit: user_parent/user_id not configured")
            self._status(self._t('status.no_user', 'No user is configured for submissions.'))
            return None

        submission = FormSubmission.from_snapshot(
            state.current_form,
            state.answer_store.snapshot(),
            user_parent=config.user_parent,
            user_id=config.user_id
        )
        # The session ends whether or not the write succeeds.
        state.end_session()
        self.app.ui.show_form_grid(state.forms)
        self._status(self._t('status.submitting', 'Sending form...'))

        return run_in_background(
            self.app,
            functools.partial(self._on_submitted, submission),
            self.app.remote_db.save_submission,
            submission
        )

    def _on_submitted(self, submission, future):
        state = self.app.state
        try:
            future.result()
        except SubmissionError as e:
            state.pending_submissions.append(submission)
            self.logger.warning(f"Submission queued for retry ({len(state.pending_submissions)} pending): {e}")
            self._status(self._t('status.submit_failed', 'Could not submit the form. It will be retried.'))
            return False

        self._status(self._t('status.submitted', 'Form submitted successfully.'))
        return True

    def retry_pending(self, widget=None):
        """Re-send queued submissions in the background.

        Returns:
            The future of the retry, or None if there was nothing to do
        """
        state = self.app.state
        if self._retry_running:
            self.logger.debug("Retry already running")
            return None
        if not state.pending_submissions:
            self._status(self._t('status.retry_empty', 'No submissions waiting to be sent.'))
            return None

        batch = list(state.pending_submissions)
        self._retry_running = True
        self._status(self._t('status.retrying', 'Sending pending submissions...'))
        return run_in_background(self.app, functools.partial(self._on_retry_done, batch), self._send_all, batch)

    def _send_all(self, submissions):
        """Try each submission once; returns those that failed."""
        failed = []
        for submission in submissions:
            try:
                self.app.remote_db.save_submission(submission)
            except SubmissionError as e:
                self.logger.warning(f"Retry failed for '{submission.form_name}': {e}")
                failed.append(submission)
        return failed

    def _on_retry_done(self, batch, future):
        self._retry_running = False
        state = self.app.state
        failed = future.result()
        # Submissions that failed while the retry ran stay queued
        queued_since = [s for s in state.pending_submissions if not any(s is b for b in batch)]
        state.pending_submissions = failed + queued_since

        sent = len(batch) - len(failed)
        if state.pending_submissions:
            message = self._t('status.retry_partial', '{pending} submissions still waiting to be sent.')
            self._status(message.replace('{pending}', str(len(state.pending_submissions))))
        else:
            self._status(self._t('status.retry_done', 'All pending submissions sent.'))
        return sent

    def cancel_form(self, widget=None):
        """Discard the active session without writing anything."""
        state = self.app.state
        if state.current_form is not None:
            self.logger.info(f"Discarded form '{state.current_form.name}'")
        state.end_session()
        self.app.ui.show_form_grid(state.forms)
