"""Error taxonomy shared by the services and the API layer."""


class TrackerError(Exception):
    """Base class. `message` is what the API shows to the user."""

    status_code = 500
    message = 'Something went wrong'

    def __init__(self, detail=None):
        self.detail = detail or self.message
        super().__init__(self.detail)


class MissingParameterError(TrackerError):
    status_code = 400
    message = 'URL is required'

    def __init__(self, parameter='url', detail=None):
        self.parameter = parameter
        if parameter != 'url':
            self.message = f'{parameter} is required'
        super().__init__(detail or self.message)


class FetchError(TrackerError):
    """Transport failure while retrieving raw HTML."""

    message = 'Failed to fetch blog content'

    def __init__(self, url, detail=None):
        self.url = url
        super().__init__(detail)


class ExtractionError(TrackerError):
    """Markup that cannot be parsed at all."""

    message = 'Failed to fetch blog content'


class PersistenceError(TrackerError):
    """Reading history could not be loaded or saved."""

    message = 'Failed to save reading history'
