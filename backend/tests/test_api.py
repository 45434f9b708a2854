"""HTTP and WebSocket tests against the assembled app, with the station faked."""

import gzip

import httpx
import pytest
from fastapi.testclient import TestClient

from config import DEFAULT_LOGO_URL
from main import create_app
from services.chat_assistant import FALLBACK_REPLY
from services.config_store import MAPPINGS_FILE
from services.defaults import ALBUM_POSTERS_FIRST_IMAGE, DEFAULT_MAPPINGS, DEFAULT_THEATER_CONFIG
from state import AppState
from tests.conftest import ONDEMAND_URL

AUDIO_URL = "https://storage.example/Song.mp3"
ART_URL = "https://art.example/cover.png"


@pytest.fixture
def client(tmp_path, fake_station):
    state = AppState(store_root=tmp_path, transport=fake_station.transport, gemini_api_key="", poll_interval=60)
    with TestClient(create_app(state)) as client:
        yield client


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# -- config ------------------------------------------------------------------


def test_config_merges_defaults_and_listing(client):
    resp = client.get("/api/config")

    assert resp.status_code == 200
    assert resp.headers["cache-control"] == "public, max-age=10"
    catalog = resp.json()
    assert set(DEFAULT_MAPPINGS) <= set(catalog)
    assert catalog["silver bells"]["imageUrl"] == "https://art.example/bells.jpg"
    assert catalog["deadspeak"]["showInDropdown"] is True


def test_config_falls_back_to_defaults_when_store_is_corrupt(tmp_path, fake_station):
    (tmp_path / MAPPINGS_FILE).write_text("{broken", encoding="utf-8")
    state = AppState(store_root=tmp_path, transport=fake_station.transport, gemini_api_key="")

    with TestClient(create_app(state)) as client:
        catalog = client.get("/api/config").json()

    assert set(catalog) == set(DEFAULT_MAPPINGS)


def test_custom_media_post_tombstones_omitted_defaults(client):
    resp = client.post("/api/custom-media", json={
        "deadspeak": DEFAULT_MAPPINGS["deadspeak"],
        "my jingle": {"audioUrl": AUDIO_URL},
    })
    assert resp.json() == {"success": True}

    catalog = client.get("/api/config").json()
    assert "deadspeak" in catalog
    assert "my jingle" in catalog
    assert "zoo promo" not in catalog
    assert "cocoa kisses" not in catalog

    stored = client.get("/api/custom-media").json()
    assert stored["zoo promo"] == {"_deleted": True}
    # Listing tracks are refreshed into the stored layer view.
    assert stored["silver bells"]["audioUrl"].endswith("/ondemand/download/1")


def test_save_mapping_requires_trigger(client):
    resp = client.post("/api/save-mapping", json={"videoUrl": "https://storage.example/A.mp4"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Trigger word is required"


def test_save_mapping_reports_missing_upload(client):
    resp = client.post("/api/save-mapping", json={
        "trigger": "New Song",
        "videoUrl": "https://storage.example/NewSong.mp4",
    })

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "File not found: NewSong.mp4 – upload TitleCase.mp4 and .mp3 first",
    }


def test_save_mapping_persists_normalized_entry(client, fake_station):
    fake_station.routes["https://storage.example/NewSong.mp4"] = httpx.Response(200)

    resp = client.post("/api/save-mapping", json={
        "trigger": "  New Song ",
        "videoUrl": "https://storage.example/NewSong.mp4",
        "audioUrl": "https://stream.hoosierillusions.com/listen/hoosier-illusions/radio.mp3",
        "playFullscreen": True,
    })

    assert resp.json() == {"success": True, "trigger": "new song"}
    saved = client.get("/api/config").json()["new song"]
    assert saved["playFullscreen"] is True
    assert saved["muteVideo"] is True
    assert saved["showInDropdown"] is True


def test_theater_config_defaults_and_replace(client):
    assert client.get("/api/theater-config").json() == DEFAULT_THEATER_CONFIG

    new_config = {"backgroundUrl": "bg.png", "maskUrl": "mask.png"}
    assert client.post("/api/theater-config", json=new_config).json() == {"success": True}
    assert client.get("/api/theater-config").json() == new_config


def test_video_position_replace(client):
    position = {"top": "10%", "left": "10%", "width": "80%", "height": "50%"}
    client.post("/api/video-position", json=position)
    assert client.get("/api/video-position").json() == position


def test_force_update_album_posters(client):
    config = client.get("/api/hotspot-config").json()
    posters = config["hotspots"][0]
    posters["label"] = "Renamed"
    posters["contents"][0]["imagePlaceholder"] = "old.png"
    client.post("/api/hotspot-config", json=config)

    resp = client.post("/api/force-update-album-posters")

    assert resp.json()["success"] is True
    posters = client.get("/api/hotspot-config").json()["hotspots"][0]
    assert posters["label"] == "Album Posters"
    assert posters["contents"][0]["imagePlaceholder"] == ALBUM_POSTERS_FIRST_IMAGE


def test_force_update_album_posters_rejects_malformed_config(client):
    client.post("/api/hotspot-config", json=["not", "a", "config"])

    resp = client.post("/api/force-update-album-posters")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to update Album Posters hotspot"


# -- proxies -------------------------------------------------------------------


def test_nowplaying_proxy(client):
    resp = client.get("/api/nowplaying")

    assert resp.headers["cache-control"] == "public, max-age=3, stale-while-revalidate=5"
    assert resp.json()["now_playing"]["song"]["title"] == "Deadspeak"


def test_proxy_audio_forwards_range(client, fake_station):
    fake_station.routes[AUDIO_URL] = httpx.Response(
        206,
        headers={"Content-Type": "audio/mpeg", "Content-Range": "bytes 0-3/10"},
        content=b"ID3x",
    )

    resp = client.get("/api/proxy-audio", params={"url": AUDIO_URL}, headers={"Range": "bytes=0-3"})

    assert resp.status_code == 206
    assert resp.content == b"ID3x"
    assert resp.headers["content-type"] == "audio/mpeg"
    assert resp.headers["content-range"] == "bytes 0-3/10"
    assert resp.headers["accept-ranges"] == "bytes"
    assert resp.headers["content-disposition"] == "inline"
    assert fake_station.hits(AUDIO_URL)[0].headers["range"] == "bytes=0-3"


def test_proxy_audio_relays_decoded_body(client, fake_station):
    fake_station.routes[AUDIO_URL] = httpx.Response(
        200,
        headers={"Content-Type": "audio/mpeg", "Content-Encoding": "gzip"},
        content=gzip.compress(b"ID3 frames"),
    )

    resp = client.get("/api/proxy-audio", params={"url": AUDIO_URL})

    assert resp.status_code == 200
    assert resp.content == b"ID3 frames"
    assert "content-encoding" not in resp.headers


def test_proxy_audio_upstream_error(client):
    resp = client.get("/api/proxy-audio", params={"url": "https://storage.example/missing.mp3"})
    assert resp.status_code == 500


def test_proxy_audio_requires_url(client):
    assert client.get("/api/proxy-audio").status_code == 400


def test_album_art_proxy(client, fake_station):
    fake_station.routes[ART_URL] = httpx.Response(200, headers={"Content-Type": "image/png"}, content=b"PNG")

    resp = client.get("/api/album-art", params={"url": ART_URL})

    assert resp.content == b"PNG"
    assert resp.headers["content-type"] == "image/png"
    assert resp.headers["cache-control"] == "public, max-age=3600"


def test_album_art_failure_redirects_to_logo(client):
    resp = client.get(
        "/api/album-art",
        params={"url": "https://art.example/gone.png"},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == DEFAULT_LOGO_URL


def test_track_metadata(client):
    audio_url = client.get("/api/config").json()["silver bells"]["audioUrl"]

    assert client.get("/api/track-metadata", params={"url": audio_url}).json() == {
        "albumArt": "https://art.example/bells.jpg"
    }
    assert client.get("/api/track-metadata", params={"url": "/unknown"}).json() == {"albumArt": None}


# -- chat ----------------------------------------------------------------------


def test_chat_matches_trigger(client):
    resp = client.post("/api/chat", json={"message": " DeadSpeak "})

    body = resp.json()
    assert body["type"] == "trigger"
    assert body["trigger"] == "deadspeak"
    assert body["mapping"]["videoUrl"].endswith("Radio%20Illusions%20%231.mp4")


def test_chat_uses_posted_mappings(client):
    resp = client.post("/api/chat", json={"message": "secret", "mappings": {"secret": {"audioUrl": "s.mp3"}}})
    assert resp.json() == {"type": "trigger", "trigger": "secret", "mapping": {"audioUrl": "s.mp3"}}


def test_chat_ignores_tombstoned_posted_mapping(client):
    resp = client.post("/api/chat", json={"message": "gone", "mappings": {"gone": {"_deleted": True}}})
    assert resp.json() == {"type": "chat", "response": FALLBACK_REPLY}


def test_chat_fallback_without_key(client):
    resp = client.post("/api/chat", json={"message": "how does this work?"})
    assert resp.json() == {"type": "chat", "response": FALLBACK_REPLY}


def test_chat_requires_message(client):
    assert client.post("/api/chat", json={"message": "  "}).status_code == 400


# -- player --------------------------------------------------------------------


def test_player_starts_idle(client):
    state = client.get("/api/player/state").json()

    assert state["session"]["isInitialState"] is True
    assert state["display"]["mode"] == "idle"
    assert state["ui"] == {"isExpanded": False, "isFullscreenPref": False}


def test_player_trigger_plays_theater_video(client):
    state = client.post("/api/player/trigger", json={"trigger": "  DeadSpeak "}).json()

    assert state["display"]["mode"] == "theater_video"
    assert state["session"]["audioSrc"].split("?")[0].endswith("/radio.mp3")
    assert "t=" in state["session"]["audioSrc"]
    assert state["display"]["audioLoop"] is True


def test_player_fullscreen_preference(client):
    client.post("/api/player/trigger", json={"trigger": "deadspeak"})
    state = client.post("/api/player/fullscreen-pref", json={"enabled": True}).json()
    assert state["display"]["mode"] == "fullscreen_video"


def test_player_unknown_trigger(client):
    resp = client.post("/api/player/trigger", json={"trigger": "xyz123"})

    assert resp.status_code == 404
    assert resp.json()["detail"] == 'No media found for "xyz123"'
    session = client.get("/api/player/state").json()["session"]
    assert session["error"] == 'No media found for "xyz123"'
    assert session["audioSrc"] is None


def test_player_theme_and_advance(client):
    state = client.post("/api/player/theme", json={"title": "Holidays"}).json()

    assert state["session"]["playlist"] == ["candy cane lane", "Frosty Windows", "Silver Bells"]
    assert state["session"]["currentTrackIndex"] == 0
    assert state["session"]["nextTrack"] == "Frosty Windows"

    state = client.post("/api/player/ended").json()
    assert state["session"]["currentTrackIndex"] == 1

    client.post("/api/player/ended")
    state = client.post("/api/player/ended").json()
    assert state["session"]["currentTrackIndex"] == 0


def test_player_theme_not_found(client):
    resp = client.post("/api/player/theme", json={"title": "Polka Night"})
    assert resp.status_code == 404


def test_player_expand_escape_and_stop(client):
    client.post("/api/player/trigger", json={"trigger": "deadspeak"})

    state = client.post("/api/player/expand").json()
    assert state["ui"]["isExpanded"] is True
    assert state["display"]["overlay"] is True

    state = client.post("/api/player/escape").json()
    assert state["ui"]["isExpanded"] is False

    client.post("/api/player/expand")
    state = client.post("/api/player/stop").json()
    assert state["session"]["isInitialState"] is True
    assert state["display"]["mode"] == "idle"
    assert state["ui"]["isExpanded"] is False


def test_player_media_error_shows_cover_art(client):
    state = client.post("/api/player/trigger", json={"trigger": "deadspeak"}).json()
    video_src = state["session"]["videoSrc"]

    state = client.post("/api/player/media-error", json={"url": video_src}).json()

    assert state["display"]["mode"] == "theater_image"
    assert state["display"]["videoSrc"] is None


def test_player_websocket_pushes_state(client):
    with client.websocket_connect("/ws/player") as ws:
        first = ws.receive_json()
        assert first["type"] == "state"
        assert first["display"]["mode"] == "idle"

        client.post("/api/player/trigger", json={"trigger": "zoo promo"})

        for _ in range(5):
            msg = ws.receive_json()
            if msg["session"]["audioSrc"]:
                break
        assert msg["type"] == "state"
        assert msg["session"]["audioSrc"].endswith("Zoo%20Promo.mp3")
        assert msg["display"]["mode"] == "theater_image"

        ws.send_json({"type": "expand"})
        msg = ws.receive_json()
        assert msg["ui"]["isExpanded"] is True


def test_listing_is_fetched_on_startup(fake_station, client):
    assert fake_station.hits(ONDEMAND_URL)


# -- frontend ------------------------------------------------------------------


def test_frontend_deep_link_serves_index(tmp_path, fake_station):
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text("<div id=root></div>", encoding="utf-8")
    (dist / "app.js").write_text("console.log(1)", encoding="utf-8")
    state = AppState(store_root=tmp_path / "store", transport=fake_station.transport, gemini_api_key="", poll_interval=60)

    with TestClient(create_app(state, frontend_dir=dist)) as client:
        assert client.get("/").text == "<div id=root></div>"
        assert client.get("/app.js").text == "console.log(1)"

        resp = client.get("/admin")
        assert resp.status_code == 200
        assert resp.text == "<div id=root></div>"
        assert resp.headers["cache-control"].startswith("no-store")

        assert client.get("/api/not-a-route").status_code == 404
        assert client.get("/health").json() == {"status": "ok"}
