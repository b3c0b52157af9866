from common.exceptions import ClassificationError


class SubRoleClassifierException(ClassificationError):
    pass


class ClassifierLLMValidationFailedError(SubRoleClassifierException):
    pass


class ClassifierTimeoutError(SubRoleClassifierException):
    pass
