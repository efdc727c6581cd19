from . import export, template

ENTRY_PARSERS = [
    export,
    template,
]
