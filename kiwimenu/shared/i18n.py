import gettext
from pathlib import Path
from typing import Callable, Optional, Union

GETTEXT_DOMAIN = "kiwimenu"


def get_translator(
    domain: str = GETTEXT_DOMAIN, localedir: Optional[Union[str, Path]] = None
) -> Callable[[str], str]:
    """gettext lookup for ``domain``; untranslated keys are returned unchanged."""
    translation = gettext.translation(
        domain, localedir=str(localedir) if localedir else None, fallback=True
    )
    return translation.gettext
