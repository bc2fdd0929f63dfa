"""UI Builder utility for reducing Toga boilerplate."""
import toga
from toga.style import Pack
from toga.style.pack import COLUMN, ROW


def _style(defaults, style_overrides=None):
    style = Pack(**defaults)
    if style_overrides:
        style.update(**style_overrides)
    return style


def create_label(text, style_overrides=None):
    """Create a Label widget with default styling.

    Args:
        text: Label text
        style_overrides: Optional dict of style overrides

    Returns:
        toga.Label widget
    """
    return toga.Label(text, style=_style({'padding': (5, 10, 5, 10)}, style_overrides))


def create_text_input(placeholder='', value='', on_change=None, style_overrides=None):
    """Create a single-line TextInput widget with default styling."""
    return toga.TextInput(
        placeholder=placeholder,
        value=value,
        on_change=on_change,
        style=_style({'padding': (5, 10, 10, 10)}, style_overrides)
    )


def create_multiline_input(placeholder='', value='', on_change=None, style_overrides=None):
    """Create a MultilineTextInput widget with default styling."""
    return toga.MultilineTextInput(
        placeholder=placeholder,
        value=value,
        on_change=on_change,
        style=_style({'padding': (5, 10, 10, 10), 'height': 80}, style_overrides)
    )


def create_button(text, on_press=None, style_overrides=None):
    """Create a Button widget with default styling."""
    return toga.Button(text, on_press=on_press, style=_style({'padding': (5, 10, 10, 10)}, style_overrides))


def create_switch(text, value=False, on_change=None, style_overrides=None):
    """Create a Switch widget with default styling."""
    return toga.Switch(text, value=value, on_change=on_change, style=_style({'padding': (5, 10, 5, 5)}, style_overrides))


def create_box(children=None, direction=COLUMN, style_overrides=None):
    """Create a Box laid out in ``direction``."""
    return toga.Box(children=children or [], style=_style({'direction': direction}, style_overrides))


def create_row(children=None, style_overrides=None):
    return create_box(children, direction=ROW, style_overrides=style_overrides)


def create_image_view(data=None, style_overrides=None):
    """Create an ImageView, showing ``data`` (image bytes) when given."""
    image = toga.Image(src=data) if data else None
    return toga.ImageView(image=image, style=_style({'height': 80, 'width': 80}, style_overrides))



def create_selection(items, value=None, on_change=None, style_overrides=None):
    """Create a Selection (drop-down) widget with default styling."""
    return toga.Selection(
        items=list(items),
        value=value,
        on_change=on_change,
        style=_style({'padding': (5, 10, 10, 10)}, style_overrides)
    )
