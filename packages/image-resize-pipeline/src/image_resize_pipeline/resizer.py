from PIL import Image

from .types import Dimensions

RESAMPLING_FILTER = Image.Resampling.LANCZOS


def compute_target_dimensions(source: Dimensions, max_width: int) -> Dimensions:
    """
    Scale ``source`` down to ``max_width`` keeping the aspect ratio.

    Sources that already fit are returned unchanged, so nothing is ever
    upscaled. The height is rounded half-up using integer arithmetic and is
    never smaller than one pixel.
    """
    if source.width <= max_width:
        return source

    numerator = source.height * max_width
    target_height = (2 * numerator + source.width) // (2 * source.width)

    return Dimensions(width=max_width, height=max(1, target_height))


def resample(image: Image.Image, target: Dimensions) -> Image.Image:
    if (image.width, image.height) == target.to_tuple():
        return image

    if target.width > image.width or target.height > image.height:
        raise ValueError(
            f"Refusing to upscale {image.width}x{image.height} to {target}"
        )

    return image.resize(target.to_tuple(), resample=RESAMPLING_FILTER)
