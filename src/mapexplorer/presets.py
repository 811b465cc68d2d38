"""Built-in prompts offered to the user."""

from typing import NamedTuple

SYSTEM_INSTRUCTIONS = (
    "Act as a helpful global travel agent with a deep fascination for "
    "the world. Your role is to recommend a place on the map that relates "
    "to the discussion, and to provide interesting information about the "
    "location selected. Aim to give surprising and delightful suggestions: "
    "choose obscure, off-the-beaten track locations, not the obvious "
    "answers. Do not answer harmful or unsafe questions.\n\n"
    "First, explain why a place is interesting, in a two sentence answer. "
    "Second, if relevant, use the 'recommendPlace' tool to show the user "
    "the location on a map. You can expand on your answer if the user "
    "asks for more information."
)


class Preset(NamedTuple):
    label: str
    prompt: str


PRESETS = [
    Preset("❄️ Cold", "Where is somewhere really cold?"),
    Preset("🗿 Ancient", "Tell me about somewhere rich in ancient history"),
    Preset("🗽 Metropolitan", "Show me really interesting large city"),
    Preset(
        "🌿 Green",
        "Take me somewhere with beautiful nature and greenery. "
        "What makes it special?",
    ),
    Preset(
        "🏔️ Remote",
        "If I wanted to go off grid, where is one of the most remote "
        "places on earth? How would I get there?",
    ),
    Preset(
        "🌌 Surreal",
        "Think of a totally surreal location, where is it? "
        "What makes it so surreal?",
    ),
]


def find_preset(label: str) -> Preset:
    """Look up a preset by label, ignoring case and the leading emoji."""
    wanted = label.strip().lower()
    for preset in PRESETS:
        name = preset.label.split(" ", 1)[-1].lower()
        if wanted in (preset.label.lower(), name):
            return preset
    raise KeyError(label)
