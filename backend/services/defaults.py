"""Built-in configuration shipped with the kiosk.

These tables are never mutated at runtime. User edits live in the config
store; removing a built-in mapping stores a tombstone under its key instead.
"""

from __future__ import annotations

from typing import Any

_AUDIO = "https://storage.googleapis.com/hoosierillusionsaudio"
_VIDEO = "https://storage.googleapis.com/hoosierillusionsvideos"
_IMAGES = "https://storage.googleapis.com/hoosierillusionsimages"
_RADIO = "https://stream.hoosierillusions.com/listen/hoosier-illusions/radio.mp3"

DEFAULT_VIDEO_SRC = f"{_VIDEO}/WelcomeToHoosierIllusions.mp4"


def _audio_only(filename: str) -> dict[str, Any]:
    return {"audioUrl": f"{_AUDIO}/{filename}", "showInDropdown": True, "muteVideo": True}


DEFAULT_MAPPINGS: dict[str, dict[str, Any]] = {
    "moonlight in her eyes": {
        "videoUrl": f"{_VIDEO}/MoonlightInHerEyes.mp4",
        "audioUrl": f"{_AUDIO}/Moonlight%20In%20Her%20Eyes.mp3",
        "showInDropdown": False,
        "muteVideo": True,
    },
    "great southern shuffle": {
        "videoUrl": f"{_VIDEO}/GreatSouthernShuffle.mp4",
        "audioUrl": f"{_AUDIO}/Great%20Southern%20Shuffle.mp3",
        "showInDropdown": False,
        "muteVideo": False,
    },
    "hoosier haze": {
        "videoUrl": f"{_VIDEO}/Cocoon.mp4",
        "audioUrl": _RADIO,
        "showInDropdown": True,
        "muteVideo": True,
    },
    "hoosier illusions": {
        "videoUrl": f"{_VIDEO}/Neon%20Hijack.mp4",
        "audioUrl": _RADIO,
        "showInDropdown": True,
        "muteVideo": True,
    },
    "deadspeak": {
        "videoUrl": f"{_VIDEO}/Radio%20Illusions%20%231.mp4",
        "audioUrl": _RADIO,
        "showInDropdown": True,
        "muteVideo": True,
    },
    "hoosier holidays": {
        "audioUrl": _RADIO,
        "showInDropdown": True,
        "muteVideo": True,
    },
    "candy cane lane": _audio_only("Candy%20Cane%20Lane.mp3"),
    "christmas lights and jingle bells": _audio_only("Christmas%20Lights%20And%20Jingle%20Bells.mp3"),
    "cocoa kisses": _audio_only("Cocoa%20Kisses.mp3"),
    "the last christmas tree": _audio_only("The%20Last%20Christmas%20Tree.mp3"),
    "cole porter": _audio_only("Cole%20Porter.mp3"),
    "dan toler": _audio_only("Dan%20Toler.mp3"),
    "dreamers road": _audio_only("Dreamers%20Road.mp3"),
    "hoagy carmichael": _audio_only("Hoagy%20Carmichael.mp3"),
    "hollywood's roar": _audio_only("Hollywood%27s%20Roar.mp3"),
    "in the haze of the night": _audio_only("In%20The%20Haze%20Of%20The%20Night.mp3"),
    "james dean": _audio_only("James%20Dean.mp3"),
    "kurt vonnegut jr.": _audio_only("Kurt%20Vonnegut%20Jr..mp3"),
    "midnight check-in": _audio_only("Midnight%20Check-In.mp3"),
    "southern road blues": _audio_only("Southern%20Road%20Blues.mp3"),
    "tralfamadore blues": _audio_only("Tralfamadore%20Blues.mp3"),
    "wes montgomery": _audio_only("Wes%20Montgomery.mp3"),
    "zoo promo": _audio_only("Zoo%20Promo.mp3"),
}

DEFAULT_THEATER_CONFIG: dict[str, Any] = {
    "backgroundUrl": f"{_IMAGES}/front.png",
    "maskUrl": f"{_IMAGES}/front-transparent.png",
}

# Sub-rectangle of the theater frame the video is drawn into.
DEFAULT_VIDEO_POSITION: dict[str, Any] = {
    "top": "35%",
    "left": "27%",
    "width": "40%",
    "height": "25%",
}

ALBUM_POSTERS_HOTSPOT_ID = "posters-left"
ALBUM_POSTERS_LABEL = "Album Posters"
ALBUM_POSTERS_FIRST_IMAGE = f"{_IMAGES}/Generated%20Image%20November%2021%2C%202025%20-%206_18AM.png"


def _poster(title: str, description: str, image: str) -> dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "imagePlaceholder": image,
        "linkUrl": "",
        "scale": 0.5,
        "posterWidth": 100,
    }


def _panel(title: str, description: str, placeholder: str) -> dict[str, Any]:
    return {"title": title, "description": description, "imagePlaceholder": placeholder, "linkUrl": ""}


DEFAULT_HOTSPOT_CONFIG: dict[str, Any] = {
    "hotspotIconUrl": f"{_IMAGES}/OwlWhiteTransparent.png",
    "merchandiseHotspotIconUrl": f"{_IMAGES}/OwlBlackTransparent.png",
    "hotspots": [
        {
            "id": ALBUM_POSTERS_HOTSPOT_ID,
            "label": ALBUM_POSTERS_LABEL,
            "top": 15,
            "left": 5,
            "width": 10,
            "height": 15,
            "posterOverlayUrl": f"{_IMAGES}/Generated%20Image%20November%2021%2C%202025%20-%206_15AM.png",
            "contents": [
                _poster(
                    "Hoosier Holidays",
                    "A festive collection of holiday classics and seasonal favorites from Hoosier Illusions Studio.",
                    ALBUM_POSTERS_FIRST_IMAGE,
                ),
                _poster(
                    "Deadspeak",
                    "Mysterious transmissions from beyond the veil. A haunting audio experience.",
                    f"{_IMAGES}/OwlWhiteTransparent.png",
                ),
                _poster(
                    "The Illusionists Gambit",
                    "A theatrical journey through magic, mystery, and musical mastery.",
                    f"{_IMAGES}/OwlWhiteTransparent.png",
                ),
                _poster(
                    "Fauna the Musical",
                    "An enchanting musical journey through the natural world.",
                    f"{_IMAGES}/OwlWhiteTransparent.png",
                ),
            ],
        },
        {
            "id": "bookshelf-left",
            "label": "Arcane Library",
            "top": 45,
            "left": 2,
            "width": 12,
            "height": 30,
            "contents": [
                _panel(
                    "Forbidden Grimoires",
                    "A collection of spellbooks and tomery that predate the theatre itself. "
                    "The books are bound in leather that feels suspiciously warm to the touch.",
                    "Mystic Bookshelf",
                ),
                _panel(
                    "The Diary of The Founder",
                    "Handwritten notes detailing the construction of the theatre. "
                    "Several pages are stuck together with what looks like ectoplasm.",
                    "Old Diary",
                ),
            ],
        },
        {
            "id": "doors-right",
            "label": "Stage Door",
            "top": 42,
            "left": 76,
            "width": 10,
            "height": 22,
            "contents": [
                _panel(
                    "The Portal",
                    "These double doors lead backstage to the dressing rooms of the mythical. "
                    "Dare you enter and challenge the spirits?",
                    "Ornate Double Doors",
                ),
                _panel(
                    "The Green Room",
                    "A lounge area where spirits relax between hauntings. "
                    "The coffee is always fresh, but the cups float away if you are not careful.",
                    "Floating Teacup",
                ),
                _panel(
                    "The Prop Loft",
                    "Shelves filled with wands that misfire, hats with bottomless pits, "
                    "and decks of cards that shuffle themselves.",
                    "Magical Clutter",
                ),
            ],
        },
    ],
    "merchandiseHotspots": [],
}
