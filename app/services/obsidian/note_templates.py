"""Markdown generation for task notes.

Contains:
- Placeholder rendering for note templates and note names
- YAML frontmatter generation
- Content preservation when a note is regenerated
"""

import re

from services.jira.task_mapper import Task

DEFAULT_NOTE_TEMPLATE = """### Details:
- Type: {{TASK_TYPE}}
- State: {{TASK_STATE}}
- Assigned to: {{TASK_ASSIGNEDTO}}
- Sprint: {{TASK_SPRINTNAME}}
- Link: [{{TASK_ID}}]({{TASK_LINK}})

### Description:
{{TASK_DESCRIPTION}}
"""

WRITE_MODE_MERGE = "merge"
WRITE_MODE_OVERWRITE = "overwrite"

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Z_]+)\s*\}\}")

FRONTMATTER_FIELDS = [
    ("id", "id"),
    ("title", "title"),
    ("state", "state"),
    ("type", "type"),
    ("assignee", "assigned_to"),
    ("sprint", "sprint_name"),
    ("link", "link"),
]


def task_placeholders(task: Task) -> dict[str, str]:
    return {
        "TASK_ID": task.id,
        "TASK_TITLE": task.title,
        "TASK_STATE": task.state,
        "TASK_TYPE": task.type,
        "TASK_ASSIGNEDTO": task.assigned_to,
        "TASK_LINK": task.link,
        "TASK_DESCRIPTION": task.desc,
        "TASK_SPRINTNAME": task.sprint_name,
    }


def render_template(template: str, task: Task) -> str:
    """Replace {{TASK_*}} placeholders. Unknown placeholders are left as-is."""
    values = task_placeholders(task)
    return PLACEHOLDER_PATTERN.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def sanitize_filename(name: str) -> str:
    """Sanitize a name for use as a filename."""
    sanitized = name.replace('/', '-')
    sanitized = re.sub(r'[:\*\?"<>|\\#^\[\]]', '', sanitized)
    return sanitized.strip()


def render_note_name(name_pattern: str, task: Task) -> str:
    """Render the note file name (without extension) for a task."""
    name = sanitize_filename(render_template(name_pattern, task))
    return name or sanitize_filename(task.id)


# Leading characters YAML reads as syntax rather than a plain scalar
YAML_INDICATORS = ('#', '[', ']', '{', '}', '-', '*', '&', '!', '%', '@', '`', '|', '>', "'", '"', ',', '?')


def _needs_yaml_quotes(value: str) -> bool:
    if not value or value != value.strip():
        return True
    if '\n' in value or ':' in value or ' #' in value or '"' in value:
        return True
    return value.startswith(YAML_INDICATORS)


def generate_yaml_frontmatter(data: dict, fields: list[tuple[str, str]]) -> str:
    """Generate YAML frontmatter from data dict.

    Args:
        data: Source data dictionary
        fields: List of (yaml_key, data_key) tuples
    """
    lines = ["---"]
    for yaml_key, data_key in fields:
        value = data.get(data_key)
        if value is None:
            value = "null"
        elif isinstance(value, bool):
            value = str(value).lower()
        elif isinstance(value, (int, float)):
            value = str(value)
        else:
            value = str(value)
            if _needs_yaml_quotes(value):
                escaped = value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
                value = f'"{escaped}"'
        lines.append(f"{yaml_key}: {value}")
    lines.append("---")
    return "\n".join(lines)


def generate_task_markdown(task: Task, template: str | None = None) -> str:
    """Generate full markdown for a task note."""
    frontmatter = generate_yaml_frontmatter(task.model_dump(), FRONTMATTER_FIELDS)
    body = render_template(template or DEFAULT_NOTE_TEMPLATE, task)
    return f"{frontmatter}\n\n{body}"


# =============================================================================
# Content Preservation
# =============================================================================


def parse_existing_file(content: str) -> tuple[str, str, str]:
    """Parse existing file to extract YAML, user content, and generated sections.

    Returns:
        (yaml_frontmatter, user_content, generated_sections)

    user_content = everything between frontmatter and first ### heading
    """
    # Check for YAML frontmatter
    if not content.startswith("---\n"):
        return "", content, ""

    # Find end of frontmatter
    lines = content.split("\n")
    yaml_end_index = -1
    for i, line in enumerate(lines[1:], 1):
        if line.strip() == "---":
            yaml_end_index = i
            break

    if yaml_end_index == -1:
        return "", content, ""

    yaml_section = "\n".join(lines[:yaml_end_index + 1])

    # Find first ### heading
    remaining = "\n".join(lines[yaml_end_index + 1:])
    heading_match = re.search(r'^### ', remaining, re.MULTILINE)

    if heading_match:
        user_content = remaining[:heading_match.start()].strip()
        generated_sections = remaining[heading_match.start():]
    else:
        user_content = remaining.strip()
        generated_sections = ""

    return yaml_section, user_content, generated_sections


def merge_with_user_content(new_markdown: str, existing_content: str | None) -> str:
    """Merge new markdown with user content from existing file.

    Preserves user content between frontmatter and first ### heading.
    Existing notes without frontmatter are treated as unmanaged and
    replaced. New markdown without a ### heading has no generated
    section to keep apart from user content, so it replaces the note.
    """
    heading_match = re.search(r'^### ', new_markdown, re.MULTILINE)
    if not existing_content or not heading_match:
        return new_markdown

    existing_yaml, user_content, _ = parse_existing_file(existing_content)

    if not existing_yaml or not user_content:
        return new_markdown

    new_yaml, _, _ = parse_existing_file(new_markdown)

    if not new_yaml:
        return new_markdown

    # Rebuild with user content preserved
    parts = [new_yaml, "", user_content, "", new_markdown[heading_match.start():]]

    return "\n".join(parts)


def build_note_content(
    task: Task,
    existing_content: str | None,
    template: str | None = None,
    write_mode: str = WRITE_MODE_MERGE,
) -> str:
    """Generate a task note, keeping user content in merge mode."""
    new_markdown = generate_task_markdown(task, template)
    if write_mode == WRITE_MODE_OVERWRITE:
        return new_markdown
    if write_mode != WRITE_MODE_MERGE:
        raise ValueError(f"Unknown note write mode: {write_mode}")
    return merge_with_user_content(new_markdown, existing_content)
