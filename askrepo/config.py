"""Persistent JSON settings.

Stores the workspace root list, the system-ignore pattern list, and prompt
templates. Malformed or missing config falls back to defaults, and write
failures are logged rather than raised.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .ignore import DEFAULT_SYSTEM_IGNORES

logger = logging.getLogger(__name__)

APP_NAME = "askrepo"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    name: str
    content: str

    @classmethod
    def create(cls, name: str, content: str) -> "PromptTemplate":
        return cls(id=str(uuid.uuid4()), name=name, content=content)


DEFAULT_PROMPT_TEMPLATES: tuple[tuple[str, str], ...] = (
    (
        "Code Review",
        "Please review this code and provide feedback on:\n"
        "- Code quality and best practices\n"
        "- Performance optimizations\n"
        "- Security considerations\n"
        "- Maintainability improvements",
    ),
    (
        "Bug Analysis",
        "Please analyze this code for potential bugs and issues:\n"
        "- Logic errors\n"
        "- Edge cases\n"
        "- Memory leaks\n"
        "- Race conditions\n"
        "- Error handling",
    ),
    (
        "Documentation",
        "Please help me document this code:\n"
        "- Add comprehensive comments\n"
        "- Create API documentation\n"
        "- Explain complex algorithms\n"
        "- Provide usage examples",
    ),
    (
        "Refactoring",
        "Please suggest refactoring improvements for this code:\n"
        "- Extract reusable components\n"
        "- Improve code organization\n"
        "- Reduce complexity\n"
        "- Follow design patterns",
    ),
    (
        "Testing",
        "Please help me create tests for this code:\n"
        "- Unit tests\n"
        "- Integration tests\n"
        "- Edge case scenarios\n"
        "- Mock implementations",
    ),
)


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON (best effort)."""
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("could not save config %s: %s", CONFIG_PATH, exc)


def _update_config(key: str, value: object) -> None:
    config = load_config()
    config[key] = value
    save_config(config)


def _string_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def load_root_directories() -> list[str]:
    """Return persisted root directory paths in saved order."""
    return [path for path in _string_list(load_config().get("root_directories")) or [] if path]


def save_root_directories(paths: list[str]) -> None:
    _update_config("root_directories", [str(path) for path in paths])


def load_system_ignores() -> list[str]:
    """Return the system-ignore list, or the defaults when never saved."""
    value = _string_list(load_config().get("system_ignores"))
    if value is None:
        return list(DEFAULT_SYSTEM_IGNORES)
    return value


def save_system_ignores(patterns: list[str]) -> None:
    _update_config("system_ignores", list(patterns))


def add_system_ignore(pattern: str) -> list[str]:
    """Append a trimmed, non-blank, not-yet-present pattern; return the list."""
    patterns = load_system_ignores()
    trimmed = pattern.strip()
    if trimmed and trimmed not in patterns:
        patterns.append(trimmed)
        save_system_ignores(patterns)
    return patterns


def remove_system_ignore(index: int) -> list[str]:
    patterns = load_system_ignores()
    if 0 <= index < len(patterns):
        del patterns[index]
        save_system_ignores(patterns)
    return patterns


def reset_system_ignores() -> list[str]:
    patterns = list(DEFAULT_SYSTEM_IGNORES)
    save_system_ignores(patterns)
    return patterns


def default_prompt_templates() -> list[PromptTemplate]:
    # Stable ids so unsaved defaults can still be updated/removed by id.
    return [
        PromptTemplate(id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"askrepo:{name}")), name=name, content=content)
        for name, content in DEFAULT_PROMPT_TEMPLATES
    ]


def load_prompt_templates() -> list[PromptTemplate]:
    """Load prompt templates; defaults when unset or not a list.

    Entries missing a string ``name`` or ``content`` are dropped.
    """
    value = load_config().get("prompt_templates")
    if not isinstance(value, list):
        return default_prompt_templates()

    templates: list[PromptTemplate] = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        name = raw.get("name")
        content = raw.get("content")
        if not isinstance(name, str) or not isinstance(content, str):
            continue
        template_id = raw.get("id")
        if not isinstance(template_id, str) or not template_id:
            template_id = str(uuid.uuid4())
        templates.append(PromptTemplate(id=template_id, name=name, content=content))
    return templates


def save_prompt_templates(templates: list[PromptTemplate]) -> None:
    _update_config(
        "prompt_templates",
        [{"id": t.id, "name": t.name, "content": t.content} for t in templates],
    )


def add_prompt_template(name: str, content: str) -> PromptTemplate | None:
    trimmed_name = name.strip()
    trimmed_content = content.strip()
    if not trimmed_name or not trimmed_content:
        return None
    template = PromptTemplate.create(trimmed_name, trimmed_content)
    save_prompt_templates(load_prompt_templates() + [template])
    return template


def update_prompt_template(template_id: str, name: str, content: str) -> PromptTemplate | None:
    templates = load_prompt_templates()
    for idx, template in enumerate(templates):
        if template.id != template_id:
            continue
        updated = PromptTemplate(id=template_id, name=name.strip(), content=content.strip())
        templates[idx] = updated
        save_prompt_templates(templates)
        return updated
    return None


def remove_prompt_template(template_id: str) -> bool:
    templates = load_prompt_templates()
    remaining = [template for template in templates if template.id != template_id]
    if len(remaining) == len(templates):
        return False
    save_prompt_templates(remaining)
    return True


def find_prompt_template(name: str) -> PromptTemplate | None:
    wanted = name.strip().casefold()
    for template in load_prompt_templates():
        if template.name.casefold() == wanted:
            return template
    return None
