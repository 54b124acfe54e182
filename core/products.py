from enum import Enum


class LintProduct(str, Enum):
    """Products that can be linted, by their top-level directory in the monorepo."""

    FIREFOX = "firefox"
    FOCUS = "focus"

    @property
    def directory(self) -> str:
        return {
            LintProduct.FIREFOX: "firefox-ios",
            LintProduct.FOCUS: "focus-ios",
        }[self]
