"""
Registry of page-side scripts that evaluate actions refer to by name.
Configuration only ever names a script; the JavaScript lives here.
"""

from typing import Dict

PAGE_SCRIPTS: Dict[str, str] = {}


class UnknownPageScriptError(KeyError):
    pass


def register_page_script(name: str, source: str) -> None:
    """Register a JavaScript function expression under a name."""
    if not name:
        raise ValueError("Page script name must not be empty")
    PAGE_SCRIPTS[name] = source


def get_page_script(name: str) -> str:
    try:
        return PAGE_SCRIPTS[name]
    except KeyError:
        raise UnknownPageScriptError(
            f"No page script registered as '{name}' (known: {', '.join(sorted(PAGE_SCRIPTS)) or 'none'})"
        ) from None


# Chat widget overlay that intercepts clicks on some target pages
register_page_script("removeGenesysApp", """() => {
    const element = document.querySelector('body > div.genesys-app');
    if (element) {
        element.remove();
    }
}""")

register_page_script("scrollToBottom", """() => {
    window.scrollTo(0, document.body.scrollHeight);
}""")
