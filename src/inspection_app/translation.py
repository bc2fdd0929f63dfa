"""Translation context for UI strings."""
import logging

from .services.errors import FetchError


class TranslationContext:
    """Holds the translations for the selected language.

    Built once at startup and passed to whatever needs UI strings. Lookups
    fall back to the key path itself, so an unloaded context still renders.
    """

    def __init__(self, remote_db, language='en', fallback_language='en'):
        self.remote_db = remote_db
        self.language = language
        self.fallback_language = fallback_language
        self.translations = {}
        self.is_loaded = False
        self._listeners = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def _fetch(self, language):
        try:
            return self.remote_db.fetch_translations(language)
        except FetchError as e:
            self.logger.warning(f"Error loading translations for {language}: {e}")
            return None

    def fetch(self, language):
        """Fetch translations for ``language``, then the fallback, without applying them.

        Safe to call off the event loop.

        Returns:
            The translation tree, or None if neither language is available
        """
        data = self._fetch(language)
        if data is None and self.fallback_language != language:
            self.logger.info(f"Loading fallback translations for {self.fallback_language}")
            data = self._fetch(self.fallback_language)
        return data

    def load(self):
        """Load translations for the selected language, then the fallback.

        Returns:
            True if either language loaded
        """
        data = self.fetch(self.language)
        if data is None:
            self.logger.warning("No translations available, using keys as text")
            self.translations = {}
            self.is_loaded = False
            return False

        self.translations = data
        self.is_loaded = True
        self.logger.info(f"Translations loaded for {self.language}")
        return True

    def get(self, key_path, default=None):
        """Look up a dotted key path such as ``form.submit``."""
        current = self.translations
        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default if default is not None else key_path
        if isinstance(current, str):
            return current
        return default if default is not None else key_path

    def add_listener(self, listener):
        """Register ``listener(language)`` to be called after a language change."""
        self._listeners.append(listener)

    def change_language(self, language, translations=None):
        """Switch to ``language`` and notify listeners.

        ``translations`` comes from an earlier ``fetch``; without it the
        language is fetched here. Nothing changes when no translations are
        available.

        Returns:
            True if the language was switched
        """
        if translations is None:
            translations = self.fetch(language)
        if translations is None:
            self.logger.warning(f"Keeping {self.language}: no translations for {language}")
            return False

        self.language = language
        self.translations = translations
        self.is_loaded = True
        self.logger.info(f"Language changed to {language}")
        for listener in list(self._listeners):
            listener(language)
        return True

    def close(self):
        """Drop loaded translations and listeners."""
        self.translations = {}
        self.is_loaded = False
        self._listeners.clear()
