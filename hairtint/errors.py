"""
Error taxonomy for the segmentation / recolor pipeline.
Each error carries a short message the UI layer can show as-is.
"""

from __future__ import annotations


class HairTintError(Exception):
    user_message = "Something went wrong while processing the photo."
    retryable = False


class InvalidColorFormat(HairTintError, ValueError):
    user_message = "Unsupported color value."


class HairRegionNotDetected(HairTintError):
    user_message = "No hair was detected. Please try a different photo."


class DimensionMismatch(HairTintError, ValueError):
    pass


class DecodeError(HairTintError):
    user_message = "The image could not be read. Please upload it again."


class EncodeError(HairTintError):
    user_message = "The result could not be saved. Please upload the photo again."


class ModelUnavailable(HairTintError):
    user_message = "The hair model is not available right now. Please try again."
    retryable = True


class NoPhotoLoaded(HairTintError):
    user_message = "Upload a photo first."
