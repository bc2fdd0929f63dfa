"""Screens for InspectionApp: form grid, form session and timesheets."""
import toga

from .ui_builder import (
    create_label, create_button, create_box, create_row, create_image_view,
    create_selection, create_switch, create_text_input
)

GRID_COLUMNS = 3


class FormUI:
    """Builds and swaps the main window content."""

    def __init__(self, app):
        self.app = app
        self.main_window = None
        self.status_label = None
        self.content_box = None
        self.language_selector = None
        self.icon_views = {}

    def _t(self, key, default):
        translations = getattr(self.app, 'translations', None)
        if translations is None:
            return default
        return translations.get(key, default)

    def _language(self):
        translations = getattr(self.app, 'translations', None)
        language = translations.language if translations is not None else self.app.config.language
        return language if language in self.app.config.available_languages else None

    def create_main_ui(self):
        """Create the window layout: header, swappable content, status line."""
        header_label = create_label(
            self._t('app.title', 'Site Inspections'),
            style_overrides={'font_size': 22, 'font_weight': 'bold', 'padding': (10, 10, 20, 10)}
        )
        self.content_box = create_box(style_overrides={'flex': 1})
        self.status_label = create_label('Ready', style_overrides={'color': '#666666', 'padding': (10, 10, 10, 10)})

        self.language_selector = create_selection(
            self.app.config.available_languages,
            value=self._language(),
            on_change=self.app.language_handler.select_language
        )
        toolbar = create_row([
            create_button(self._t('menu.timesheets', 'Timesheets'), on_press=self.app.timesheet_handler.load_timesheets),
            create_button(self._t('menu.retry', 'Send pending'), on_press=self.app.form_handler.retry_pending),
            create_button(self._t('menu.refresh', 'Refresh'), on_press=self.app.form_handler.load_forms),
            self.language_selector,
        ])

        main_box = create_box(
            children=[header_label, toolbar, self.content_box, self.status_label],
            style_overrides={'padding': 10}
        )
        if self.main_window is not None:
            self.main_window.content = main_box
        return main_box

    def set_status(self, text):
        if self.status_label is not None:
            self.status_label.text = text

    def _replace_content(self, *children):
        for child in list(self.content_box.children):
            self.content_box.remove(child)
        self.content_box.add(*children)

    def show_form_grid(self, forms):
        """Show one tile per form; icons arrive later through ``set_form_icon``."""
        self.icon_views = {}
        rows = []
        row = []
        for form in forms:
            icon_view = create_image_view(self.app.state.icon_data.get(form.icon_name))
            self.icon_views.setdefault(form.icon_name, []).append(icon_view)
            tile = create_box(
                children=[
                    icon_view,
                    create_button(form.name, on_press=lambda widget, form=form: self.app.form_handler.start_form(form)),
                ],
                style_overrides={'padding': (5, 5, 5, 5), 'flex': 1}
            )
            row.append(tile)
            if len(row) == GRID_COLUMNS:
                rows.append(create_row(row))
                row = []
        if row:
            rows.append(create_row(row))

        if not rows:
            rows.append(create_label(self._t('forms.empty', 'No forms available.')))

        self._replace_content(toga.ScrollContainer(content=create_box(children=rows), horizontal=False))

    def set_form_icon(self, icon_name, data):
        """Show downloaded icon bytes in every tile using ``icon_name``."""
        for icon_view in self.icon_views.get(icon_name, []):
            icon_view.image = toga.Image(src=data)

    def show_form(self, form, question_views):
        """Show the questions of the active session."""
        title = create_label(form.name, style_overrides={'font_size': 18, 'font_weight': 'bold'})
        buttons = create_row([
            create_button(self._t('form.submit', 'Submit'), on_press=self.app.form_handler.submit_form),
            create_button(self._t('form.cancel', 'Cancel'), on_press=self.app.form_handler.cancel_form),
        ])
        form_box = create_box(children=[title] + [view.widget for view in question_views] + [buttons])
        self._replace_content(toga.ScrollContainer(content=form_box, horizontal=False))

    def _clock_on_section(self):
        hire_switch = create_switch(self._t('timesheets.hire_equipment', 'Hire equipment included'))
        equipment_input = create_text_input(placeholder=self._t('timesheets.equipment_type', 'Equipment type'))
        location_input = create_text_input(placeholder=self._t('timesheets.start_location', 'Start location'))
        clock_on = create_button(
            self._t('timesheets.clock_on', 'Clock on'),
            on_press=lambda widget: self.app.timesheet_handler.clock_on(
                hire_switch.value, equipment_input.value, location_input.value
            )
        )
        return [hire_switch, equipment_input, location_input, clock_on]

    def _clock_off_section(self, session):
        started = create_label(
            f"{self._t('timesheets.clocked_on', 'Clocked on at')} {session.started_at:%H:%M} ({session.start_location})"
        )
        lunch_switch = create_switch(self._t('timesheets.lunch_break', 'Had a lunch break'))
        lunch_input = create_text_input(placeholder=self._t('timesheets.lunch_length', 'Length of lunch'))
        children = [started, lunch_switch, lunch_input]
        hire_input = None
        if session.hire_equipment_included:
            hire_input = create_text_input(placeholder=self._t('timesheets.hire_length', 'Length of hire'))
            children.append(hire_input)
        location_input = create_text_input(placeholder=self._t('timesheets.stop_location', 'Stop location'))
        clock_off = create_button(
            self._t('timesheets.clock_off', 'Clock off'),
            on_press=lambda widget: self.app.timesheet_handler.clock_off(
                lunch_switch.value,
                lunch_input.value,
                hire_input.value if hire_input is not None else '',
                location_input.value
            )
        )
        return children + [location_input, clock_off]

    def show_timesheets(self, timesheets, active_session=None):
        """Clock on/off controls, then the exported timesheets with an export button each."""
        if active_session is None:
            clock_rows = self._clock_on_section()
        else:
            clock_rows = self._clock_off_section(active_session)
        rows = [create_box(children=clock_rows, style_overrides={'padding': (5, 5, 15, 5)})]

        rows.append(create_label(self._t('timesheets.title', 'Timesheets'), style_overrides={'font_weight': 'bold'}))
        for timesheet in timesheets:
            rows.append(create_row([
                create_label(f"{timesheet.start_date_string} - {timesheet.end_date_string}", style_overrides={'flex': 1}),
                create_button(
                    self._t('timesheets.export', 'Export'),
                    on_press=lambda widget, timesheet=timesheet: self.app.timesheet_handler.export_timesheet(timesheet)
                ),
            ]))
        if not timesheets:
            rows.append(create_label(self._t('timesheets.empty', 'No timesheets found.')))
        back = create_button(self._t('menu.back', 'Back'), on_press=lambda widget: self.show_form_grid(self.app.state.forms))
        self._replace_content(toga.ScrollContainer(content=create_box(children=rows + [back]), horizontal=False))
