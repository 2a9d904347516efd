"""
Exception types raised by the compilation step.
"""


class InvalidArgument(ValueError):
    """A caller-supplied argument or input table violates a precondition.

    Subclasses ValueError so the step runner treats it as an expected
    failure.
    """
