"""Application state management for InspectionApp."""
from dataclasses import dataclass, field
from typing import Optional, List, Dict

from shared.schemas import FormTemplate, FormSubmission, Timesheet, WorkSession
from .form_store import FormAnswerStore


@dataclass
class SessionState:
    """State shared by the handlers.

    The answer store exists only while a form is being filled out; it is
    created by ``start_session`` and dropped on submit or cancel.
    """
    forms: List[FormTemplate] = field(default_factory=list)
    current_form: Optional[FormTemplate] = None
    answer_store: Optional[FormAnswerStore] = None
    question_views: List[object] = field(default_factory=list)

    # Submissions whose write failed, kept for retry
    pending_submissions: List[FormSubmission] = field(default_factory=list)

    timesheets: List[Timesheet] = field(default_factory=list)
    # Newest first
    work_sessions: List[WorkSession] = field(default_factory=list)
    icon_data: Dict[str, bytes] = field(default_factory=dict)

    @property
    def in_session(self):
        return self.answer_store is not None

    @property
    def active_work_session(self):
        """The newest work session when it is still running."""
        if self.work_sessions and self.work_sessions[0].is_running:
            return self.work_sessions[0]
        return None

    def start_session(self, form, store):
        self.current_form = form
        self.answer_store = store
        self.question_views = []

    def end_session(self):
        """Discard the active form session."""
        self.current_form = None
        self.answer_store = None
        self.question_views = []
