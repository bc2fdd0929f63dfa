"""Language selection handler."""
import functools
import logging

from .background import run_in_background


class LanguageHandler:
    """Switches the UI language from the toolbar selector."""

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger(self.__class__.__name__)

    def select_language(self, widget):
        """Fetch the chosen language in the background and apply it on the loop."""
        language = widget.value
        translations = self.app.translations
        if not language or language == translations.language:
            return None
        self.logger.info(f"Switching language to {language}")
        return run_in_background(
            self.app, functools.partial(self._on_fetched, language), translations.fetch, language
        )

    def _on_fetched(self, language, future):
        if not self.app.translations.change_language(language, future.result()):
            self.app.ui.set_status(f"Language {language} is not available.")
            return False
        self.app.config.set('language', language)
        return True
