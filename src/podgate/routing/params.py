"""Path parameter converters.

Each converter constrains what a segment like ``{name}`` or
``{version:version}`` may capture. Captured values are always passed
to handlers as strings.
"""


# regex pattern for each supported converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "version": r"[0-9][0-9.]*",
}
