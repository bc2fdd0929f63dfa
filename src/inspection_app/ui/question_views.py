"""Answer input views for form questions.

Each view is given the session's answer store and the id of the question it
renders. Edits are written back through the store by id; a view never holds
its own copy of the record.
"""
import logging

from shared.enums import AnswerField, ChoiceAnswer, QuestionType
from ..form_store import AnswerNotFoundError
from .ui_builder import (
    create_label, create_switch, create_text_input, create_multiline_input,
    create_box, create_row
)

DEFAULT_COMMENT_MAX_LENGTH = 50


class QuestionView:
    """Base class: renders one question and writes its answer to the store."""

    def __init__(self, store, question_id, translations=None):
        self.store = store
        self.question_id = question_id
        self.translations = translations
        self.logger = logging.getLogger(self.__class__.__name__)
        self.last_error = None
        self.widget = None

    @property
    def question(self):
        """Current record for this view's question, resolved through the store."""
        return self.store.get(self.question_id)

    def _t(self, key, default):
        if self.translations is None:
            return default
        return self.translations.get(key, default)

    def _write(self, field, value):
        """Write a field through the store.

        Returns:
            True on success, False if the question is no longer in the store
        """
        try:
            self.store.update(self.question_id, field, value)
        except AnswerNotFoundError as e:
            self.last_error = e
            self.logger.error(f"Could not save {AnswerField(field).value} for question '{self.question_id}': {e}")
            return False
        self.last_error = None
        return True


class ChoiceQuestionView(QuestionView):
    """OK / Not OK / N/A question with an optional comment.

    The three switches behave as a radio group: at most one is on, and
    turning the selected switch off turns it straight back on.
    """

    def __init__(self, store, question_id, translations=None,
                 comment_max_length=DEFAULT_COMMENT_MAX_LENGTH, enforce_comment_limit=False):
        super().__init__(store, question_id, translations)
        self.comment_max_length = comment_max_length
        self.enforce_comment_limit = enforce_comment_limit
        self._syncing = False

        record = self.question
        try:
            self._selected = ChoiceAnswer(record.answer) if record.answer is not None else None
        except ValueError:
            self.logger.warning(f"Ignoring unknown stored answer {record.answer!r} for '{question_id}'")
            self._selected = None

        self.question_label = create_label(record.text, style_overrides={'font_size': 16})
        self.switches = {
            choice: create_switch(
                self._t(f"form.choice.{choice.name.lower()}", choice.label),
                value=(choice == self._selected),
                on_change=lambda widget, choice=choice: self.on_switch_change(choice, widget.value)
            )
            for choice in ChoiceAnswer
        }
        placeholder = self._t('form.comment_placeholder', 'Enter comment (max {max} chars)')
        self.comment_input = create_text_input(
            placeholder=placeholder.replace('{max}', str(comment_max_length)),
            value=record.comment or '',
            on_change=self.on_comment_change
        )
        self.widget = create_box(
            children=[
                self.question_label,
                create_row(list(self.switches.values())),
                self.comment_input
            ],
            style_overrides={'padding': (8, 8, 8, 8), 'background_color': '#e6e6e6'}
        )

    @property
    def selected(self):
        return self._selected

    def _sync_switches(self):
        self._syncing = True
        try:
            for choice, switch in self.switches.items():
                switch.value = (choice == self._selected)
        finally:
            self._syncing = False

    def select(self, choice):
        """Select one choice and store its token as the answer.

        Returns:
            True if the answer was stored
        """
        choice = ChoiceAnswer(choice)
        if self._write(AnswerField.ANSWER, choice.value):
            self._selected = choice
        self._sync_switches()
        return self._selected == choice

    def on_switch_change(self, choice, is_on):
        """Switch handler; keeps radio-group semantics."""
        if self._syncing:
            return
        if is_on:
            self.select(choice)
        else:
            self._sync_switches()

    def on_comment_change(self, widget):
        if self._syncing:
            return
        text = widget.value
        if text is not None and len(text) > self.comment_max_length:
            if self.enforce_comment_limit:
                text = text[:self.comment_max_length]
                self._syncing = True
                try:
                    widget.value = text
                finally:
                    self._syncing = False
            else:
                self.logger.debug(f"Comment for '{self.question_id}' is over {self.comment_max_length} characters")
        self._write(AnswerField.COMMENT, text)


class FreeTextQuestionView(QuestionView):
    """Free-text question.

    An empty field stores ``None``; the placeholder is drawn by the toolkit
    and is never part of the field's value.
    """

    def __init__(self, store, question_id, translations=None):
        super().__init__(store, question_id, translations)
        record = self.question
        self.question_label = create_label(record.text, style_overrides={'font_size': 16})
        self.answer_input = create_multiline_input(
            placeholder=self._t('form.answer_placeholder', 'Enter your answer'),
            value=record.answer or '',
            on_change=self.on_change
        )
        self.widget = create_box(
            children=[self.question_label, self.answer_input],
            style_overrides={'padding': (8, 8, 8, 8), 'background_color': '#e6e6e6'}
        )

    @property
    def placeholder(self):
        return self.answer_input.placeholder

    def on_change(self, widget):
        text = widget.value
        self._write(AnswerField.ANSWER, text if text else None)


def create_question_view(store, question, translations=None, config=None):
    """Build the input view matching ``question.type``."""
    if question.type == QuestionType.OK_NOT_OK_NA:
        kwargs = {}
        if config is not None:
            kwargs = {
                'comment_max_length': config.comment_max_length,
                'enforce_comment_limit': config.enforce_comment_limit,
            }
        return ChoiceQuestionView(store, question.id, translations, **kwargs)
    if question.type == QuestionType.INPUT:
        return FreeTextQuestionView(store, question.id, translations)
    raise ValueError(f"Unsupported question type: {question.type}")
