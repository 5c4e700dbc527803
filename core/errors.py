class FlashcardAppError(Exception):
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class FieldValidationError(FlashcardAppError):
    default_message = "Please fill in all required fields"


class Unauthenticated(FlashcardAppError):
    default_message = "User not authenticated"


class NotFound(FlashcardAppError):
    default_message = "Not found"


class StoreError(FlashcardAppError):
    default_message = "Storage request failed"


class OcrFailure(FlashcardAppError):
    default_message = "Failed to process image"


class AiFailure(FlashcardAppError):
    default_message = "Failed to process with AI"


class ParseFailure(AiFailure):
    default_message = "Failed to parse AI response"

    def __init__(self, message: str | None = None, *, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


class WizardBusy(FlashcardAppError):
    default_message = "Another step is still running"


class WizardStateError(FlashcardAppError):
    default_message = "This step is not available right now"
