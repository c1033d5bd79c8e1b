"""Parameter strings and placeholder substitution for query and action templates.

A template names its parameters with any of three equivalent spellings:
``{{.host}}``, ``{{host}}`` or ``$host``.  Parameters arrive from the
reasoning engine as a flat ``key1=value1,key2=value2`` string.

Substitution is a single pass per spelling per key.  A value that itself
contains placeholder-shaped text (``$other``) may be substituted again when
``other`` is processed later; callers must not feed such values in.
"""

from __future__ import annotations


def parse_params(text: str) -> dict[str, str]:
    """Parse ``key1=value1,key2=value2`` into a dict.

    Keys and values are trimmed.  Pairs without ``=`` or with an empty key
    are skipped.  There is no escaping, so a value containing a literal
    comma is split.
    """
    params: dict[str, str] = {}
    if not text:
        return params
    for pair in text.split(","):
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        params[key] = value.strip()
    return params


def substitute(template: str, params: dict[str, str]) -> str:
    """Replace every known placeholder in *template* with its value.

    Placeholders whose names are not in *params* are left untouched. Values
    are inserted as-is, so a value that itself contains a placeholder for a
    shorter key is expanded by a later pass.
    """
    result = template
    # Longest names first so ``$host`` never clobbers ``$host_id``.
    for key in sorted(params, key=len, reverse=True):
        if not key:
            continue
        value = params[key]
        result = result.replace("{{." + key + "}}", value)
        result = result.replace("{{" + key + "}}", value)
        result = result.replace("$" + key, value)
    return result


def render(template: str, params_text: str) -> str:
    """Substitute a raw parameter string into *template*."""
    if not template or not params_text:
        return template
    return substitute(template, parse_params(params_text))
