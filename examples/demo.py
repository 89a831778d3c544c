"""
jsonsalve demonstration script.
"""

import logging

from pydantic import BaseModel

import jsonsalve


class Component(BaseModel):
    name: str
    purpose: str
    lines_of_code: int


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("jsonsalve - LLM JSON Repair Demo")
    print("=" * 40)

    examples = [
        ("{“name”: ‘Widget’}", "Curly quotes"),
        ('{"na" + "me": "Widget"}', "Concatenated key"),
        ('["alpha", beta, "gamma"]', "Bare array element"),
        ("```json\n{name: 'x', 'count': 3,}\n```", "Fenced response"),
        ("Sure! Here is the JSON:\n[1, 2, ...", "Prose and truncation"),
        (
            '{"type":"object","properties":'
            '{"purpose":{"type":"string","description":"Parses input"}}}',
            "Echoed schema",
        ),
        ("I could not produce an answer.", "Unrecoverable"),
    ]

    for i, (raw, description) in enumerate(examples, 1):
        print(f"\n{i}. {description}")
        print(f"Input:  {raw.strip()}")

        result = jsonsalve.process(raw)
        if result.success:
            print(f"Output: {result.data}")
        else:
            print(f"Error:  {result.error}")
        for step in result.mutation_steps:
            print(f"  - {step}")

    # Schema-aware repair and coercion
    print(f"\n{len(examples) + 1}. Target schema")
    raw = '{"name": "parser", "purpose": "tokenize", "lines_of_code": "~150 lines",}'
    print(f"Input:  {raw}")
    result = jsonsalve.process(raw, target_schema=Component)
    print(f"Output: {result.data if result.success else result.error}")


if __name__ == "__main__":
    main()
