"""Thin wrapper around Jinja2 for rendering link destination paths."""

from __future__ import annotations

import os
import re
from typing import Any, Callable, Dict, List

from jinja2 import BaseLoader, Environment, Template, TemplateError, pass_context

from .errors import TemplateFormatError

_UNSAFE_CHARS = re.compile(r"[#%&{}/\\<>^*?$!'\":`+|@=]")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[\s_\-.]+")
_SMALL_WORDS = {"a", "an", "and", "as", "at", "but", "by", "for", "in", "nor", "of", "on", "or", "the", "to", "vs"}


def _words(value: str) -> List[str]:
    value = _WORD_BOUNDARY.sub(r"\1 \2", value)
    return [w for w in _SEPARATORS.split(value) if w]


def _title(value: str) -> str:
    out = []
    for i, w in enumerate(_words(value)):
        low = w.lower()
        out.append(low if i and low in _SMALL_WORDS else low.capitalize())
    return " ".join(out)


def _sentence(value: str) -> str:
    text = " ".join(w.lower() for w in _words(value))
    return text[:1].upper() + text[1:]


def _camel(value: str) -> str:
    words = _words(value)
    return "".join([w.lower() if i == 0 else w.lower().capitalize() for i, w in enumerate(words)])


CASE_STYLES: Dict[str, Callable[[str], str]] = {
    "lower": lambda s: s.lower(),
    "upper": lambda s: s.upper(),
    "capital": lambda s: " ".join(w[:1].upper() + w[1:] for w in _words(s)),
    "title": _title,
    "sentence": _sentence,
    "snake": lambda s: "_".join(w.lower() for w in _words(s)),
    "constant": lambda s: "_".join(w.upper() for w in _words(s)),
    "kebab": lambda s: "-".join(w.lower() for w in _words(s)),
    "camel": _camel,
    "pascal": lambda s: "".join(w.lower().capitalize() for w in _words(s)),
    "header": lambda s: "-".join(w.lower().capitalize() for w in _words(s)),
    "dot": lambda s: ".".join(w.lower() for w in _words(s)),
}


def case_format(value: Any, style: str) -> str:
    try:
        transform = CASE_STYLES[style]
    except KeyError:
        raise TemplateFormatError(str(style), f"unknown case style {style!r}") from None
    return transform(str(value))


@pass_context
def append_year(context, value: Any) -> str:
    year = context.get("year")
    if year:
        return f"{value} ({year})"
    return str(value)


def normal(value: Any) -> str:
    """Remove characters that are unsafe in file names."""
    return _UNSAFE_CHARS.sub("", str(value))


FILTERS: Dict[str, Callable] = {
    "caseFormat": case_format,
    "appendYear": append_year,
    "normal": normal,
}


class PathFormatter:
    def __init__(self, filters: Dict[str, Callable] | None = None) -> None:
        self._env = Environment(loader=BaseLoader(), autoescape=False)
        self._env.filters.update(filters or FILTERS)
        self._cache: Dict[str, Template] = {}

    def _template(self, template: str) -> Template:
        tmpl = self._cache.get(template)
        if tmpl is None:
            try:
                tmpl = self._env.from_string(template)
            except TemplateError as e:
                raise TemplateFormatError(template, str(e)) from e
            self._cache[template] = tmpl
        return tmpl

    def render(self, template: str, context: Dict[str, Any]) -> str:
        tmpl = self._template(template)
        try:
            return tmpl.render(**context)
        except TemplateError as e:
            raise TemplateFormatError(template, str(e)) from e

    def destination(self, target_path: str, template: str, metadata: Dict[str, Any], extension: str) -> str:
        rendered = self.render(template, {**metadata, "extension": extension})
        relative = os.path.normpath(os.path.normpath(rendered).lstrip(os.sep))
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            raise TemplateFormatError(template, f"rendered path {rendered!r} leaves the target directory")
        return os.path.normpath(os.path.join(target_path, relative))
