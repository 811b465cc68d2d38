"""The ``recommendPlace`` tool and its argument model."""

import logging

from pydantic import BaseModel, ValidationError

from mapexplorer.tools import tool

logger = logging.getLogger(__name__)

RECOMMEND_PLACE = "recommendPlace"


class Place(BaseModel):
    location: str
    caption: str


@tool(name=RECOMMEND_PLACE)
async def recommend_place(renderer, location: str, caption: str, still_current=None):
    """Shows the user a map of the place provided.

    Args:
        location: Give a specific place, including country name.
        caption: Give the place name and the fascinating reason you selected this particular place. Keep the caption to one or two sentences maximum
    """
    return await renderer.render(
        Place(location=location, caption=caption), still_current=still_current
    )


def parse_place(arguments) -> Place | None:
    """Validate parsed ``recommendPlace`` arguments.

    Returns ``None`` (and logs) when a field is missing or not a string.
    """
    try:
        return Place.model_validate(arguments, strict=True)
    except ValidationError as e:
        logger.warning(
            f"Dropping {RECOMMEND_PLACE} call with invalid arguments: {e}"
        )
        return None
