"""Field Inspection App - Main application."""
import concurrent.futures
import logging
import toga

from .config_manager import ConfigManager
from .logging_config import setup_logging
from .state import SessionState
from .translation import TranslationContext
from .services.api_service import APIService
from .services.remote_db import RemoteDatabase
from .services.blob_store import BlobStore
from .services.icon_cache import IconCache
from .handlers.form_handler import FormHandler
from .handlers.timesheet_handler import TimesheetHandler
from .handlers.language_handler import LanguageHandler
from .ui.form_ui import FormUI


class InspectionApp(toga.App):
    """Main InspectionApp class."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        super().__init__(formal_name='Site Inspections', app_id='com.amsitesolutions.inspections')

    def startup(self):
        """Initialize the app"""
        self.config = ConfigManager()
        setup_logging(self.config.log_level, self.config.log_colors)
        self.logger.info("Starting InspectionApp initialization")
        self.logger.info(f"Configuration loaded: API URL={self.config.api_base_url}")

        self.api_service = APIService(
            self.config.api_base_url,
            timeout=self.config.api_timeout,
            max_retries=self.config.api_max_retries,
            retry_delay=self.config.api_retry_delay,
            auth_token=self.config.api_token or None
        )
        self.remote_db = RemoteDatabase(self.api_service)
        self.blob_store = BlobStore(
            self.config.storage_base_url,
            self.config.storage_bucket,
            timeout=self.config.api_timeout
        )
        self.icon_cache = IconCache(self.config.icon_cache_dir, self.blob_store, self.config.icon_max_bytes)
        self.logger.info("Services initialized")

        self.translations = TranslationContext(
            self.remote_db,
            language=self.config.language,
            fallback_language=self.config.fallback_language
        )
        self.translations.load()

        self.state = SessionState()
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=self.config.executor_workers)

        self.form_handler = FormHandler(self)
        self.timesheet_handler = TimesheetHandler(self)
        self.language_handler = LanguageHandler(self)
        self.logger.debug("Handlers initialized")

        self.ui = FormUI(self)
        self.main_window = toga.MainWindow(title=self.formal_name)
        self.ui.main_window = self.main_window
        self.ui.create_main_ui()
        self.translations.add_listener(self.on_language_changed)

        self.main_window.show()
        self.form_handler.load_forms()
        self.logger.info("InspectionApp initialization completed")

    def on_language_changed(self, language):
        """Rebuild the UI with the new language, keeping any open form and its answers."""
        self.ui.create_main_ui()
        if self.state.in_session:
            self.form_handler.show_current_form()
        else:
            self.ui.show_form_grid(self.state.forms)

    def on_exit(self):
        self.logger.info("Shutting down")
        self.translations.close()
        self.executor.shutdown(wait=False, cancel_futures=True)
        return True


def main():
    return InspectionApp()
