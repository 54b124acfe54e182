"""
Line-based editors for the Swift files that list every Nimbus feature flag.

Each editor works on the exact layout of one firefox-ios source file. The text
transformations are plain functions of (content, name) so they can be checked
against fixture strings; the editor classes add reading and writing the file.
Lists of feature names are kept in alphabetical order.
"""

import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from core.nimbus.helpers import read_text, write_atomically
from core.nimbus.rendering import renderer
from utils.errors import NimbusError
from utils.logger import logger
from utils.strings import camel_to_title_case, capitalize_first

ENUM_CASE_INDENT = "    "
LIST_ENTRY_INDENT = " " * 16

# `.featureName,` / `.featureName:`, optionally opening a `case` line.
LIST_ENTRY = re.compile(r"^(?:case\s+)?\.(\w+)\s*([,:])$")
QUOTED = re.compile(r'"([^"]+)"')


def _split(content: str) -> List[str]:
    return content.split("\n")


def _join(lines: List[str]) -> str:
    return "\n".join(lines)


def _leading_identifier(text: str) -> str:
    name = []
    for char in text:
        if not char.isalnum():
            break
        name.append(char)
    return "".join(name)


def _find_line(lines: List[str], needle: str, start: int = 0) -> Optional[int]:
    for index in range(start, len(lines)):
        if needle in lines[index]:
            return index
    return None


def _with_suffix(line: str, suffix: str) -> str:
    stripped = line.rstrip()
    return stripped[:-1] + suffix


def check_function_name(name: str) -> str:
    return f"check{capitalize_first(name)}Feature"


# Alphabetical `.name,` lists closed by `.last:`

def insert_list_entry(lines: List[str], start: int, name: str, terminator: str, what: str) -> List[str]:
    """
    Inserts `.name` into the case list that begins at `start` and ends before the
    line starting with `terminator`.

    Only entries on their own line are used as insertion anchors; an entry that
    shares its line with `case` stays first.
    """
    insert_index = None
    last_entry_index = None
    for index in range(start, len(lines)):
        stripped = lines[index].strip()
        if stripped.startswith(terminator):
            break
        if stripped in ("default:", "}"):
            raise NimbusError(f"Could not find insertion point for {what}")

        match = LIST_ENTRY.match(stripped)
        if match:
            last_entry_index = index
            if stripped.startswith(".") and match.group(1) > name and insert_index is None:
                insert_index = index
    else:
        raise NimbusError(f"Could not find insertion point for {what}")

    if insert_index is not None:
        lines.insert(insert_index, f"{LIST_ENTRY_INDENT}.{name},")
    elif last_entry_index is not None:
        lines[last_entry_index] = _with_suffix(lines[last_entry_index], ",")
        lines.insert(last_entry_index + 1, f"{LIST_ENTRY_INDENT}.{name}:")
    else:
        raise NimbusError(f"Could not find insertion point for {what}")
    return lines


def remove_list_entry(lines: List[str], start: int, name: str, terminator: str) -> List[str]:
    """Removes `.name` from the case list starting at `start`, keeping the `:` on the last entry."""
    for index in range(start, len(lines)):
        stripped = lines[index].strip()
        if stripped.startswith(terminator):
            break

        match = LIST_ENTRY.match(stripped)
        if not match or match.group(1) != name:
            continue

        if stripped.startswith("case"):
            next_stripped = lines[index + 1].strip() if index + 1 < len(lines) else ""
            if not next_stripped.startswith(".") or not LIST_ENTRY.match(next_stripped):
                raise NimbusError(f"'{name}' is the only entry of its case and has to be removed by hand")
            # pull the next entry up onto the `case` line
            lines[index] = lines[index][: lines[index].index(".")] + next_stripped
            del lines[index + 1]
            break

        if match.group(2) == ":":
            for previous in range(index - 1, start - 1, -1):
                previous_stripped = lines[previous].strip()
                if LIST_ENTRY.match(previous_stripped) and previous_stripped.endswith(","):
                    lines[previous] = _with_suffix(lines[previous], ":")
                    break
        del lines[index]
        break
    return lines


def list_contains(lines: List[str], start: int, name: str, terminator: str) -> bool:
    for index in range(start, len(lines)):
        stripped = lines[index].strip()
        if stripped.startswith(terminator) or stripped == "default:":
            return False
        match = LIST_ENTRY.match(stripped)
        if match and match.group(1) == name:
            return True
    return False


class FlaggableFeatureValidation(BaseModel):
    is_in_debug_key: bool
    is_user_toggleable: bool


class NimbusFlaggableFeatureEditor:
    """Edits NimbusFlaggableFeature.swift: the flag ID enum, debugKey and featureKey."""

    ENUM_MARKER = "enum NimbusFeatureFlagID"
    DEBUG_KEY_MARKER = "var debugKey: String?"
    FEATURE_KEY_MARKER = "var featureKey: String?"
    NOT_TOGGLEABLE_MARKER = "Cases where users do not have the option"

    def __init__(self, path: Path):
        self.path = Path(path)

    def add_feature(self, name: str, debug: bool = False, user_toggleable: bool = False) -> None:
        write_atomically(self.path, self.with_feature(read_text(self.path), name, debug, user_toggleable))
        logger.debug(f"Added '{name}' to {self.path}")

    def validate_removal(self, name: str) -> FlaggableFeatureValidation:
        """
        Checks that `name` can be removed and reports where it appears.

        Raises:
            NimbusError: If the enum case for `name` is missing.
        """
        content = read_text(self.path)
        if not re.search(rf"case {re.escape(name)}\b", content):
            raise NimbusError(f"Feature '{name}' not found in NimbusFeatureFlagID enum")

        lines = _split(content)
        debug_key = _find_line(lines, self.DEBUG_KEY_MARKER)
        is_in_debug_key = debug_key is not None and list_contains(lines, debug_key + 1, name, "return rawValue")

        toggleable = rf"case \.{re.escape(name)}:\s*\n\s*(return FlagKeys\.|fatalError)"
        is_user_toggleable = re.search(toggleable, content) is not None

        return FlaggableFeatureValidation(is_in_debug_key=is_in_debug_key, is_user_toggleable=is_user_toggleable)

    def remove_feature(self, name: str, is_in_debug_key: bool, is_user_toggleable: bool) -> None:
        content = self.without_feature(read_text(self.path), name, is_in_debug_key, is_user_toggleable)
        write_atomically(self.path, content)
        logger.debug(f"Removed '{name}' from {self.path}")

    @classmethod
    def with_feature(cls, content: str, name: str, debug: bool = False, user_toggleable: bool = False) -> str:
        content = cls.add_enum_case(content, name)
        if debug:
            content = cls.add_to_debug_key(content, name)
        if user_toggleable:
            return cls.add_user_toggleable_case(content, name)
        return cls.add_to_default_case(content, name)

    @classmethod
    def without_feature(cls, content: str, name: str, is_in_debug_key: bool, is_user_toggleable: bool) -> str:
        content = cls.remove_enum_case(content, name)
        if is_in_debug_key:
            content = cls.remove_from_debug_key(content, name)
        if is_user_toggleable:
            return cls.remove_user_toggleable_case(content, name)
        return cls.remove_from_default_case(content, name)

    # Enum cases

    @classmethod
    def add_enum_case(cls, content: str, name: str) -> str:
        lines = _split(content)
        in_enum = False
        insert_index = None
        last_case_index = None

        for index, line in enumerate(lines):
            if cls.ENUM_MARKER in line:
                in_enum = True
                continue
            if not in_enum:
                continue

            stripped = line.strip()
            if stripped.startswith("case "):
                last_case_index = index
                if _leading_identifier(stripped[5:]) > name and insert_index is None:
                    insert_index = index

            # cases end at the first comment, property or closing brace
            if stripped.startswith("//") or stripped.startswith("var ") or stripped == "}":
                if insert_index is None and last_case_index is not None:
                    insert_index = last_case_index + 1
                break

        if insert_index is None:
            raise NimbusError("Could not find insertion point for enum case")

        lines.insert(insert_index, f"{ENUM_CASE_INDENT}case {name}")
        return _join(lines)

    @staticmethod
    def remove_enum_case(content: str, name: str) -> str:
        lines = _split(content)
        for index, line in enumerate(lines):
            if line.strip() == f"case {name}":
                del lines[index]
                break
        return _join(lines)

    # debugKey

    @classmethod
    def add_to_debug_key(cls, content: str, name: str) -> str:
        lines = _split(content)
        start = _find_line(lines, cls.DEBUG_KEY_MARKER)
        if start is None:
            raise NimbusError("Could not find insertion point for debugKey")
        return _join(insert_list_entry(lines, start + 1, name, "return rawValue", "debugKey"))

    @classmethod
    def remove_from_debug_key(cls, content: str, name: str) -> str:
        lines = _split(content)
        start = _find_line(lines, cls.DEBUG_KEY_MARKER)
        if start is None:
            return content
        return _join(remove_list_entry(lines, start + 1, name, "return rawValue"))

    # featureKey

    @classmethod
    def _default_case_start(cls, lines: List[str]) -> Optional[int]:
        feature_key = _find_line(lines, cls.FEATURE_KEY_MARKER)
        if feature_key is None:
            return None
        marker = _find_line(lines, cls.NOT_TOGGLEABLE_MARKER, feature_key + 1)
        return None if marker is None else marker + 1

    @classmethod
    def add_user_toggleable_case(cls, content: str, name: str) -> str:
        lines = _split(content)
        start = cls._default_case_start(lines)
        if start is None:
            raise NimbusError("Could not find insertion point for featureKey user-toggleable case")

        # goes right above the comment that opens the non-toggleable list
        lines[start - 1:start - 1] = renderer.render_lines("user_toggleable_case.swift.j2", name=name)
        return _join(lines)

    @classmethod
    def remove_user_toggleable_case(cls, content: str, name: str) -> str:
        lines = _split(content)
        feature_key = _find_line(lines, cls.FEATURE_KEY_MARKER)
        if feature_key is None:
            return content

        for index in range(feature_key + 1, len(lines)):
            if lines[index].strip() != f"case .{name}:":
                continue
            for end in range(index + 1, len(lines)):
                next_stripped = lines[end].strip()
                if next_stripped.startswith("case ") or next_stripped.startswith("//"):
                    del lines[index:end]
                    break
            break
        return _join(lines)

    @classmethod
    def add_to_default_case(cls, content: str, name: str) -> str:
        lines = _split(content)
        start = cls._default_case_start(lines)
        if start is None:
            raise NimbusError("Could not find insertion point for featureKey default case")
        return _join(insert_list_entry(lines, start, name, "return nil", "featureKey default case"))

    @classmethod
    def remove_from_default_case(cls, content: str, name: str) -> str:
        lines = _split(content)
        start = cls._default_case_start(lines)
        if start is None:
            return content
        return _join(remove_list_entry(lines, start, name, "return nil"))


class NimbusFeatureFlagLayerEditor:
    """Edits NimbusFeatureFlagLayer.swift: the checkNimbusConfigFor switch and the check functions."""

    SWITCH_MARKER = "switch featureID"
    SWITCH_END = "        }"

    def __init__(self, path: Path):
        self.path = Path(path)

    def add_feature(self, name: str) -> None:
        write_atomically(self.path, self.with_feature(read_text(self.path), name))
        logger.debug(f"Added '{name}' to {self.path}")

    def validate_removal(self, name: str) -> None:
        """
        Raises:
            NimbusError: If the switch case or the check function for `name` is missing.
        """
        content = read_text(self.path)
        if not re.search(rf"case \.{re.escape(name)}:", content):
            raise NimbusError(f"Feature '{name}' not found in checkNimbusConfigFor switch")

        function_name = check_function_name(name)
        if f"private func {function_name}" not in content:
            raise NimbusError(f"Function '{function_name}' not found in NimbusFeatureFlagLayer")

    def remove_feature(self, name: str) -> None:
        write_atomically(self.path, self.without_feature(read_text(self.path), name))
        logger.debug(f"Removed '{name}' from {self.path}")

    @classmethod
    def with_feature(cls, content: str, name: str) -> str:
        return cls.add_check_function(cls.add_switch_case(content, name), name)

    @classmethod
    def without_feature(cls, content: str, name: str) -> str:
        return cls.remove_check_function(cls.remove_switch_case(content, name), name)

    @classmethod
    def add_switch_case(cls, content: str, name: str) -> str:
        lines = _split(content)
        in_switch = False
        insert_index = None
        last_case_index = None
        appended = False

        for index, line in enumerate(lines):
            if cls.SWITCH_MARKER in line:
                in_switch = True
                continue
            if not in_switch:
                continue

            stripped = line.strip()
            if stripped.startswith("case ."):
                last_case_index = index
                if _leading_identifier(stripped[6:]) > name and insert_index is None:
                    insert_index = index

            if stripped == "}" and line.startswith(cls.SWITCH_END):
                if insert_index is None and last_case_index is not None:
                    # after the last case's return line
                    insert_index = last_case_index + 2
                    appended = True
                break

        if insert_index is None:
            raise NimbusError("Could not find insertion point for switch case")

        snippet = renderer.render_lines("flag_layer_case.swift.j2", name=name, function_name=check_function_name(name))
        if appended:
            snippet = [""] + snippet
        elif insert_index > 0 and not lines[insert_index - 1].strip():
            # keep the blank line between cases
            insert_index -= 1
            snippet = [""] + snippet
        else:
            snippet = snippet + [""]

        lines[insert_index:insert_index] = snippet
        return _join(lines)

    @staticmethod
    def remove_switch_case(content: str, name: str) -> str:
        lines = _split(content)
        for index, line in enumerate(lines):
            if line.strip() != f"case .{name}:":
                continue
            # the case line and its return line, plus one separating blank line
            start, end = index, index + 2
            if index > 0 and not lines[index - 1].strip():
                start -= 1
            elif end < len(lines) and not lines[end].strip():
                end += 1
            del lines[start:end]
            break
        return _join(lines)

    @staticmethod
    def add_check_function(content: str, name: str) -> str:
        lines = _split(content)
        insert_index = None
        for index in range(len(lines) - 1, -1, -1):
            if lines[index].strip() == "}":
                insert_index = index
                break

        if insert_index is None:
            raise NimbusError("Could not find class closing brace")

        snippet = renderer.render_lines("check_function.swift.j2", name=name, function_name=check_function_name(name))
        lines[insert_index:insert_index] = [""] + snippet
        return _join(lines)

    @staticmethod
    def remove_check_function(content: str, name: str) -> str:
        lines = _split(content)
        declaration = f"private func {check_function_name(name)}"

        start = _find_line(lines, declaration)
        if start is None:
            return content

        depth = 0
        opened = False
        for end in range(start, len(lines)):
            opens = lines[end].count("{")
            depth += opens - lines[end].count("}")
            # the signature may wrap before its opening brace
            opened = opened or opens > 0
            if opened and depth == 0:
                if start > 0 and not lines[start - 1].strip():
                    start -= 1
                del lines[start:end + 1]
                break
        return _join(lines)


class FeatureFlagsDebugViewControllerEditor:
    """Edits FeatureFlagsDebugViewController.swift: the QA settings toggles."""

    CHILDREN_MARKER = "var children: [Setting]"
    SETTING_MARKER = "FeatureFlagsBoolSetting("

    def __init__(self, path: Path):
        self.path = Path(path)

    def add_feature(self, name: str) -> None:
        write_atomically(self.path, self.add_setting(read_text(self.path), name))
        logger.debug(f"Added '{name}' to {self.path}")

    def feature_exists(self, name: str) -> bool:
        return f"with: .{name}," in read_text(self.path)

    def remove_feature(self, name: str) -> None:
        write_atomically(self.path, self.remove_setting(read_text(self.path), name))
        logger.debug(f"Removed '{name}' from {self.path}")

    @classmethod
    def add_setting(cls, content: str, name: str) -> str:
        lines = _split(content)
        title = camel_to_title_case(name)
        in_children = False
        insert_index = None
        last_setting_end = None

        for index, line in enumerate(lines):
            if cls.CHILDREN_MARKER in line:
                in_children = True
                continue
            if not in_children:
                continue

            if cls.SETTING_MARKER in line:
                for lookahead in range(index, min(index + 5, len(lines))):
                    if "titleText:" in lines[lookahead]:
                        match = QUOTED.search(lines[lookahead])
                        if match and match.group(1) > title and insert_index is None:
                            insert_index = index
                        break

            if line.strip() == "},":
                last_setting_end = index

            # end of the children array
            if "#if canImport" in line or line.strip() == "]":
                if insert_index is None and last_setting_end is not None:
                    insert_index = last_setting_end + 1
                break

        if insert_index is None:
            raise NimbusError("Could not find insertion point for debug setting")

        lines[insert_index:insert_index] = renderer.render_lines("debug_setting.swift.j2", name=name, title=title)
        return _join(lines)

    @classmethod
    def remove_setting(cls, content: str, name: str) -> str:
        lines = _split(content)
        anchor = _find_line(lines, f"with: .{name},")
        if anchor is None:
            return content

        start = None
        for index in range(anchor, max(0, anchor - 5) - 1, -1):
            if cls.SETTING_MARKER in lines[index]:
                start = index
                break

        end = None
        for index in range(anchor, min(anchor + 10, len(lines))):
            if lines[index].strip() == "},":
                end = index
                break

        if start is not None and end is not None:
            del lines[start:end + 1]
        return _join(lines)
