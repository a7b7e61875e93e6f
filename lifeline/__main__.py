"""Entry point for `python -m lifeline`.

    python -m lifeline                  run the assistant
    python -m lifeline -match <text>    show how <text> would be matched
    python -m lifeline -commands        list the voice commands
"""

import sys


def _match_cmd(text):
    """Match a single input and print the result in test_cases.txt format."""
    from lifeline.commands.matcher import Matcher

    result = Matcher().match(text)
    print(f"> {text}")

    if not result.accepted:
        print("action: none")
        print(f"error: {type(result.error).__name__}")
        return

    m = result.match
    print(f"action: {m.action.value}")
    print(f"phrase: {m.matched_phrase}")
    print(f"confidence: {m.confidence:.2f}")
    for key, val in m.parameters.items():
        print(f"{key}: {val}")


def _commands_cmd():
    from lifeline.commands.catalog import command_descriptions

    for examples, description in command_descriptions():
        quoted = ", ".join(f'"{e}"' for e in examples)
        print(f"{description}: {quoted}")


if __name__ == "__main__" or not sys.argv[0]:
    if len(sys.argv) >= 3 and sys.argv[1] == "-match":
        _match_cmd(" ".join(sys.argv[2:]))
    elif len(sys.argv) == 2 and sys.argv[1] == "-commands":
        _commands_cmd()
    else:
        from lifeline.main import main
        main()
