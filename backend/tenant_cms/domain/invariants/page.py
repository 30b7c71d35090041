from .ordering import assert_dense_order
from .section import assert_section
from .exceptions import InvariantViolation


def assert_page(page, publish=False):
    sections = page.sections

    if publish and not sections:
        raise InvariantViolation("Cannot publish page without sections.")

    assert_dense_order(sections, label="Section")

    if publish:
        for section in sections:
            assert_section(section)
