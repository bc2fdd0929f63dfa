import enum


class QuestionType(str, enum.Enum):
    """Question types used in form templates.

    Values match the ``type`` strings stored in the ``forms`` node.
    """
    OK_NOT_OK_NA = "ok_not_ok_na"
    INPUT = "input"

    @property
    def submission_label(self):
        """Type label written into completed form records."""
        if self is QuestionType.OK_NOT_OK_NA:
            return "OkNotOkNa"
        return self.value


class ChoiceAnswer(str, enum.Enum):
    """Answer tokens for OK / Not OK / N/A questions."""
    OK = "OK"
    NOT_OK = "NOK"
    NA = "NA"

    @property
    def label(self):
        return {
            ChoiceAnswer.OK: "OK",
            ChoiceAnswer.NOT_OK: "Not OK",
            ChoiceAnswer.NA: "N/A",
        }[self]


class AnswerField(str, enum.Enum):
    """Mutable fields of a FormQuestion."""
    ANSWER = "answer"
    COMMENT = "comment"
