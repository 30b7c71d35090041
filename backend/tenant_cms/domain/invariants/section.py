from tenant_cms.domain.section_content import validate_section_content
from .exceptions import InvariantViolation


def assert_section(section):
    if not section.component_type:
        raise InvariantViolation("Section must have a component_type.")

    errors = validate_section_content(section.component_type, section.content or {})
    if errors:
        fields = ", ".join(sorted(errors))
        raise InvariantViolation(
            f"Section {section.id} ({section.component_type}) has invalid content: {fields}"
        )
