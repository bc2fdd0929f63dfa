"""Pydantic schemas for form templates, answers and submissions."""
from datetime import datetime
from typing import Optional, List, Dict, Any
import logging
from pydantic import BaseModel, Field, ConfigDict, field_validator
from shared.enums import QuestionType
from shared.utils import sanitize_storage_key, format_path_timestamp, now

logger = logging.getLogger(__name__)

# Prefix of the standard questions asked at the top of every form
HEADER_QUESTION_PREFIX = 'additional'

# Header question id -> key in the submission's additionalData node
HEADER_DATA_KEYS = {
    'additional1': 'plantNo',
    'additional2': 'opHours',
    'additional3': 'spotter',
    'additional4': 'location',
    'additional5': 'others',
}

# Stored when no location was given
UNKNOWN_LOCATION = 'Unknown Location'


class Question(BaseModel):
    """Immutable question definition from a form template."""
    id: str = Field(..., min_length=1)
    text: str
    type: QuestionType

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional['Question']:
        """Parse a stored question, returning None when it is incomplete or of an unknown type."""
        if not isinstance(record, dict):
            return None
        question_id = record.get('id')
        text = record.get('text')
        type_string = record.get('type')
        if not isinstance(question_id, str) or not isinstance(text, str) or not isinstance(type_string, str):
            return None
        try:
            question_type = QuestionType(type_string)
        except ValueError:
            logger.warning(f"Skipping question {question_id}: unknown type '{type_string}'")
            return None
        return cls(id=question_id, text=text, type=question_type)


HEADER_QUESTIONS = [
    Question(id='additional1', text='Plant No / Reg No:', type=QuestionType.INPUT),
    Question(id='additional2', text='Operation Hours on Clock', type=QuestionType.INPUT),
    Question(id='additional3', text='Fire Extinguisher in Place?', type=QuestionType.INPUT),
    Question(id='additional4', text='Location / Site', type=QuestionType.INPUT),
    Question(id='additional5', text='Others', type=QuestionType.INPUT),
]


class FormTemplate(BaseModel):
    """A named form: an ordered list of questions plus its grid icon."""
    id: str
    name: str
    icon_name: str
    questions: List[Question] = Field(default_factory=list)
    is_displayed: bool = True

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_record(cls, form_id: str, record: Dict[str, Any]) -> Optional['FormTemplate']:
        """Parse one child of the ``forms`` node.

        Forms missing a name, icon or question list are skipped. Individual
        questions that cannot be parsed are dropped from the form.
        """
        if not isinstance(record, dict):
            return None
        name = record.get('name')
        icon_name = record.get('iconName')
        questions = record.get('questions')
        if not isinstance(name, str) or not isinstance(icon_name, str) or not isinstance(questions, list):
            logger.warning(f"Skipping form {form_id}: missing name, iconName or questions")
            return None

        parsed = []
        for question_record in questions:
            question = Question.from_record(question_record)
            if question is not None:
                parsed.append(question)

        is_displayed = record.get('isDisplayed', True)
        return cls(
            id=form_id,
            name=name,
            icon_name=icon_name,
            questions=parsed,
            is_displayed=is_displayed if isinstance(is_displayed, bool) else True
        )


class FormQuestion(BaseModel):
    """Working copy of a question with the answer captured during a session."""
    id: str
    text: str
    type: QuestionType
    answer: Optional[str] = None
    comment: Optional[str] = None

    @classmethod
    def from_question(cls, question: Question) -> 'FormQuestion':
        return cls(id=question.id, text=question.text, type=question.type)

    @property
    def is_header(self) -> bool:
        return self.id.startswith(HEADER_QUESTION_PREFIX)

    @property
    def is_answered(self) -> bool:
        return self.answer is not None and bool(self.answer.strip())


class Timesheet(BaseModel):
    """A stored timesheet export."""
    id: str
    created_at: float = 0
    start_date_string: str = ""
    end_date_string: str = ""
    original_path: str = ""

    @classmethod
    def from_record(cls, timesheet_id: str, record: Dict[str, Any]) -> 'Timesheet':
        record = record if isinstance(record, dict) else {}
        created_at = record.get('createdAt', 0)
        return cls(
            id=timesheet_id,
            created_at=created_at if isinstance(created_at, (int, float)) else 0,
            start_date_string=record.get('startDateString') or "",
            end_date_string=record.get('endDateString') or "",
            original_path=record.get('originalPath') or ""
        )


class WorkSession(BaseModel):
    """A clock-on / clock-off work period recorded against a user.

    Times are epoch milliseconds. A session without ``stop_time`` is still
    running.
    """
    id: str = Field(..., min_length=1)
    start_time: int
    start_location: str = UNKNOWN_LOCATION
    hire_equipment_included: bool = False
    equipment_type: Optional[str] = None
    stop_time: Optional[int] = None
    stop_location: Optional[str] = None
    had_lunch_break: Optional[bool] = None
    length_of_lunch: Optional[str] = None
    length_of_hire: Optional[str] = None

    @staticmethod
    def is_session_record(record: Any) -> bool:
        """Session nodes share their parent with notes; only these carry start data."""
        return isinstance(record, dict) and 'startTime' in record and 'startLocation' in record

    @classmethod
    def from_record(cls, session_id: str, record: Dict[str, Any]) -> Optional['WorkSession']:
        if not cls.is_session_record(record):
            return None
        start_time = record.get('startTime')
        if not isinstance(start_time, (int, float)):
            return None
        stop_time = record.get('stopTime')
        return cls(
            id=session_id,
            start_time=int(start_time),
            start_location=record.get('startLocation') or UNKNOWN_LOCATION,
            hire_equipment_included=bool(record.get('hireEquipmentIncluded', False)),
            equipment_type=record.get('equipmentType'),
            stop_time=int(stop_time) if isinstance(stop_time, (int, float)) else None,
            stop_location=record.get('stopLocation'),
            had_lunch_break=record.get('hadLunchBreak'),
            length_of_lunch=record.get('lengthOfLunch'),
            length_of_hire=record.get('lengthOfHire')
        )

    @property
    def is_running(self) -> bool:
        return self.stop_time is None

    @property
    def started_at(self) -> datetime:
        """Start time as a local datetime."""
        return datetime.fromtimestamp(self.start_time / 1000)

    def to_record(self) -> Dict[str, Any]:
        """Fields written when the session is started."""
        record = {
            'date': self.start_time,
            'startTime': self.start_time,
            'startLocation': self.start_location,
            'hireEquipmentIncluded': self.hire_equipment_included,
        }
        if self.hire_equipment_included and self.equipment_type:
            record['equipmentType'] = self.equipment_type
        return record

    def stop_record(self) -> Dict[str, Any]:
        """Fields merged into the stored session when it is stopped."""
        record = {'stopTime': self.stop_time, 'stopLocation': self.stop_location or UNKNOWN_LOCATION}
        if self.had_lunch_break is not None:
            record['hadLunchBreak'] = self.had_lunch_break
            record['lengthOfLunch'] = self.length_of_lunch or ""
            record['lengthOfHire'] = self.length_of_hire or ""
        return record


class FormSubmission(BaseModel):
    """A completed form ready to be written to the remote database."""
    form_id: str
    form_name: str
    user_parent: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    submitted_at: datetime = Field(default_factory=now)
    answers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    additional_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('form_name')
    @classmethod
    def validate_form_name(cls, v):
        if not sanitize_storage_key(v):
            raise ValueError("form_name must contain at least one storable character")
        return v

    @classmethod
    def from_snapshot(cls, form: FormTemplate, questions: List[FormQuestion], user_parent: str,
                      user_id: str, submitted_at: Optional[datetime] = None) -> 'FormSubmission':
        """Build the submission record from a store snapshot.

        Header questions keep their ``additionalN`` id as key. All other
        questions are numbered ``q1, q2, ...`` in display order.
        """
        answers = {}
        counter = 1
        for question in questions:
            entry = {
                'questionType': question.type.submission_label,
                'questionText': question.text,
                'answer': question.answer or "",
            }
            if question.comment is not None:
                entry['comment'] = question.comment

            if question.is_header:
                key = question.id
            else:
                key = f"q{counter}"
                counter += 1
            answers[key] = entry

        additional_data = {
            data_key: answers.get(question_id, {}).get('answer', "")
            for question_id, data_key in HEADER_DATA_KEYS.items()
        }
        # Photo upload is not supported; readers expect the key to be present
        additional_data['photoUrls'] = []

        return cls(
            form_id=form.id,
            form_name=form.name,
            user_parent=user_parent,
            user_id=user_id,
            submitted_at=submitted_at or now(),
            answers=answers,
            additional_data=additional_data
        )

    @property
    def storage_path(self) -> str:
        """Database path of this submission."""
        return '/'.join([
            'completedForms',
            sanitize_storage_key(self.user_parent),
            sanitize_storage_key(self.form_name),
            format_path_timestamp(self.submitted_at),
            sanitize_storage_key(self.user_id),
        ])

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the stored document layout."""
        return {
            'answers': self.answers,
            'additionalData': self.additional_data,
            'metadata': {
                'formId': self.form_id,
                'formName': self.form_name,
                'userId': self.user_id,
                'submittedAt': self.submitted_at.isoformat(),
            },
        }
