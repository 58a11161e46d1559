from typing import Mapping

import jsonschema

from healthchat.tools.base import ToolDescriptor, normalize_schema


class ToolValidator:
    @staticmethod
    def validate(descriptor: ToolDescriptor, tool_input: Mapping[str, str]) -> tuple[bool, str | None]:
        try:
            jsonschema.validate(
                instance=dict(tool_input),
                schema=normalize_schema(descriptor.input_schema),
            )
            return True, None
        except jsonschema.ValidationError as e:
            return False, str(e.message)
