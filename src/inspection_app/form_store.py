"""Form Answer Store: the single source of truth for a form session."""
import logging
import threading
from typing import Dict, Iterable, Iterator, List, Optional

from shared.enums import AnswerField
from shared.schemas import FormQuestion, Question


class AnswerNotFoundError(LookupError):
    """Raised when an update or lookup names a question id the store does not hold."""

    def __init__(self, question_id):
        self.question_id = question_id
        super().__init__(f"No question with id '{question_id}' in the current form")


class FormAnswerStore:
    """Ordered FormQuestion records for one form-filling session.

    Records are created from the template questions when the session starts
    and are only ever located by id. Every write goes through ``update`` so
    exactly one record changes per call.
    """

    def __init__(self, questions: Iterable[FormQuestion] = ()):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._records: List[FormQuestion] = []
        self._index: Dict[str, int] = {}
        for record in questions:
            if record.id in self._index:
                raise ValueError(f"Duplicate question id '{record.id}'")
            self._index[record.id] = len(self._records)
            self._records.append(record.model_copy())

    @classmethod
    def from_questions(cls, questions: Iterable[Question]) -> 'FormAnswerStore':
        """Build a store with one unanswered FormQuestion per Question."""
        return cls(FormQuestion.from_question(q) for q in questions)

    def __len__(self):
        return len(self._records)

    def __contains__(self, question_id):
        return question_id in self._index

    def __iter__(self) -> Iterator[FormQuestion]:
        return iter(self.snapshot())

    @property
    def ids(self) -> List[str]:
        return [record.id for record in self._records]

    def _find(self, question_id) -> FormQuestion:
        position = self._index.get(question_id)
        if position is None:
            raise AnswerNotFoundError(question_id)
        record = self._records[position]
        # Positions are checked against the id before use.
        if record.id != question_id:
            raise AnswerNotFoundError(question_id)
        return record

    def get(self, question_id) -> FormQuestion:
        """Return a copy of the current record for ``question_id``."""
        with self._lock:
            return self._find(question_id).model_copy()

    def update(self, question_id, field, value: Optional[str]) -> FormQuestion:
        """Set ``answer`` or ``comment`` on the record with ``question_id``.

        Args:
            question_id: Id of the question to change
            field: AnswerField or its string value
            value: New text, or None to clear the field

        Returns:
            A copy of the updated record

        Raises:
            AnswerNotFoundError: If no record has that id; nothing is changed
            ValueError: If ``field`` is not an answer field
        """
        answer_field = AnswerField(field)
        with self._lock:
            try:
                record = self._find(question_id)
            except AnswerNotFoundError:
                self.logger.warning(f"Update of {answer_field.value} failed: question '{question_id}' not found")
                raise
            setattr(record, answer_field.value, value)
            self.logger.debug(f"Updated {answer_field.value} of '{question_id}' to {value!r}")
            return record.model_copy()

    def snapshot(self) -> List[FormQuestion]:
        """Return copies of all records in display order."""
        with self._lock:
            return [record.model_copy() for record in self._records]

    def validate(self, required_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Return ids of required questions without an answer.

        Args:
            required_ids: Ids that must be answered; every question when None

        Returns:
            Missing ids in display order
        """
        with self._lock:
            required = set(self._index) if required_ids is None else set(required_ids)
            return [
                record.id for record in self._records
                if record.id in required and not record.is_answered
            ]
