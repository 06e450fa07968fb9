class DisplayError(RuntimeError):
    pass


class DisplayNotFoundError(DisplayError):
    pass


class FeatureNotSupportedError(DisplayError):
    pass


class ProfileNotFoundError(DisplayError):
    pass
