# gallery_api/errors.py


class GalleryError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(GalleryError):
    status_code = 400


class NotFoundError(GalleryError):
    status_code = 404


class CapacityExceeded(GalleryError):
    status_code = 400


class UpstreamFailure(GalleryError):
    """Le stockage d'objets ou la base n'a pas répondu : rien n'est persisté."""

    status_code = 502
