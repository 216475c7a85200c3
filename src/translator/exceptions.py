"""Translator exceptions."""


class EmojiTranslatorError(Exception):
    """Base error for the translation pipeline."""

    pass


class ProviderNotConfiguredError(EmojiTranslatorError):
    """A remote provider has no credential configured."""

    pass


class EmptyCompletionError(EmojiTranslatorError):
    """A remote provider returned an empty or whitespace completion."""

    pass


class InvalidRequestError(EmojiTranslatorError):
    """The request body could not be parsed into a translation request."""

    pass
