from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _


def validate_image_size(image):
    """
    Reject uploads larger than MAX_UPLOAD_SIZE_MB before they reach the blob store.
    """
    limit_mb = settings.MAX_UPLOAD_SIZE_MB
    if image.size > limit_mb * 1024 * 1024:
        raise ValidationError(
            _("Image file too large. Maximum size is %(limit)s MB.") % {"limit": limit_mb},
            code="image_too_large",
        )
