"""
Common string transformations used by the Nimbus commands.
"""


def camel_to_snake_case(value: str) -> str:
    """Converts camelCase to snake_case (e.g., "testButtress" -> "test_buttress")."""
    result = []
    for index, char in enumerate(value):
        if char.isupper() and index > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def camel_to_kebab_case(value: str) -> str:
    """Converts camelCase to kebab-case (e.g., "testButtress" -> "test-buttress")."""
    result = []
    for index, char in enumerate(value):
        if char.isupper() and index > 0:
            result.append("-")
        result.append(char.lower())
    return "".join(result)


def camel_to_title_case(value: str) -> str:
    """Converts camelCase to Title Case (e.g., "testButtress" -> "Test Buttress")."""
    result = []
    for index, char in enumerate(value):
        if char.isupper() and index > 0:
            result.append(" ")
        result.append(char.upper() if index == 0 else char)
    return "".join(result)


def capitalize_first(value: str) -> str:
    """Capitalizes the first letter only (e.g., "testButtress" -> "TestButtress")."""
    if not value:
        return value
    return value[0].upper() + value[1:]
