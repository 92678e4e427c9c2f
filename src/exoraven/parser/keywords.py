"""
Fixed vocabulary of the Exoscript language.

Shared by the lexer, parser, linter and the editor projections.
"""

# Tilde directives, in documentation order
COMMANDS = ("if", "ifd", "set", "setif", "call", "callif", "disabled", "once")

REQUIREMENT_COMMANDS = frozenset({"if", "ifd"})
MUTATION_COMMANDS = frozenset({"set", "setif", "call", "callif", "once"})

# Directives that stand alone
BARE_COMMANDS = frozenset({"disabled", "once"})
# Directives whose empty expression is shorthand
OPTIONAL_EXPRESSION_COMMANDS = frozenset({"set", "call"})
# Directives whose expression gets a parenthesis check
CONDITION_COMMANDS = frozenset({"if", "ifd"})
ASSIGNMENT_COMMANDS = frozenset({"set", "setif"})

# Near-miss spellings, exact lookup only
COMMAND_TYPOS = {
    "iff": "if",
    "fi": "if",
    "ifdd": "ifd",
    "sett": "set",
    "setiff": "setif",
    "calll": "call",
    "calliff": "callif",
    "disable": "disabled",
    "disabeld": "disabled",
}

# Jump destinations that never need a definition
SPECIAL_TARGETS = ("start", "end", "back", "backonce", "startonce")

VARIABLE_PREFIXES = ("var_", "mem_", "hog_", "skill_", "love_", "story_", "call_")

# Accepted by the prefix lint in addition to VARIABLE_PREFIXES
LINT_PREFIXES = VARIABLE_PREFIXES + ("plot_",)

# Words that happen to be followed by an underscore in ordinary expressions
KNOWN_SUFFIX_WORDS = frozenset({
    "age", "season", "month", "job", "location", "chara", "repeat", "random",
    "mapspot", "biome", "status", "once", "first", "bg", "left", "right",
    "midleft", "midright", "speaker", "sprite",
})

# Lines of four or more '=' are decoration, not headers
DIVIDER_MIN_LENGTH = 4


def is_special_target(target: str) -> bool:
    return target.lower() in SPECIAL_TARGETS
