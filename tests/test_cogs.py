"""
Tests for the cogs.

Command bodies are called through their callbacks with a mocked bot
and context; no Twitch connection is made.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chirpbot.utils.chirp import ChirpCommandHandler, ChirpOutcome, PlaybackDecision  # noqa: E402
from chirpbot.utils.sound_pool import SoundCategory, SoundEntry, SoundPool  # noqa: E402


class ScriptedRandom:
    """Random source replaying a fixed script."""

    def __init__(self, values: list[float]) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


def make_pool() -> SoundPool:
    return SoundPool(
        [SoundEntry("chirp.mp3", SoundCategory.NORMAL, 99)],
        SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION, 1),
        sounds_dir="/sounds",
    )


def make_ctx(username: str = "alice") -> MagicMock:
    ctx = MagicMock()
    ctx.author.name = username
    ctx.send = AsyncMock()
    return ctx


class TestChirpCog:
    """Tests for the chirp cog."""

    def test_format_decision(self) -> None:
        from chirpbot.cogs.chirp import format_decision

        normal = PlaybackDecision("chirp.mp3", False, 0, ChirpOutcome.NORMAL, "alice")
        entered = PlaybackDecision("scream.mp3", True, 1, ChirpOutcome.ENTERED, "alice")
        continued = PlaybackDecision("scream.mp3", True, 3, ChirpOutcome.CONTINUED, "bob")
        ended = PlaybackDecision("chirp.mp3", False, 0, ChirpOutcome.ENDED, "carol")

        assert format_decision(normal) is None
        assert "@alice" in format_decision(entered)
        assert "x3" in format_decision(continued)
        assert "@carol" in format_decision(ended)

    def test_stream_end_resets_escalation(self) -> None:
        from chirpbot.cogs.chirp import Chirp

        bot = MagicMock()
        cog = Chirp(bot)

        assert cog.update_live_channels([]) is False
        assert cog.update_live_channels(["Streamer"]) is False
        assert cog.update_live_channels(["streamer"]) is False
        bot.reset_escalation.assert_not_called()

        assert cog.update_live_channels([]) is True
        bot.reset_escalation.assert_called_once()

        assert cog.update_live_channels([]) is False
        bot.reset_escalation.assert_called_once()

    def test_chirp_plays_and_replies_on_escalation(self) -> None:
        from chirpbot.cogs.chirp import Chirp

        bot = MagicMock()
        bot.sound_pool = make_pool()
        bot.chirp_handler = ChirpCommandHandler(bot.sound_pool, rng=ScriptedRandom([0.1, 0.999]))
        cog = Chirp(bot)
        ctx = make_ctx("alice")

        asyncio.run(Chirp.chirp._callback(cog, ctx))

        bot.player.play.assert_called_once_with(Path("/sounds/chirp.mp3"))
        ctx.send.assert_not_awaited()

        asyncio.run(Chirp.chirp._callback(cog, ctx))

        bot.player.play.assert_called_with(Path("/sounds/scream.mp3"))
        ctx.send.assert_awaited_once_with("🐔 @alice set the rubber chicken loose! AAAAAAAAH")
        assert bot.chirp_handler.status() == (True, 1)


class TestArrivals:
    """Tests for arrival sound helpers."""

    def test_arrival_sound_name(self) -> None:
        from chirpbot.cogs.arrivals import arrival_sound_name

        assert arrival_sound_name("NightlyMate") == "nightlymate-arrived.mp3"

    def test_cooldown_remaining(self) -> None:
        from chirpbot.cogs.arrivals import cooldown_remaining

        now = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)

        assert cooldown_remaining(None, 12, now) is None
        assert cooldown_remaining(now - timedelta(hours=13), 12, now) is None
        assert cooldown_remaining(now - timedelta(hours=12), 12, now) is None
        assert cooldown_remaining(now - timedelta(hours=2), 12, now) == timedelta(hours=10)

    def test_arrived_plays_once_per_cooldown(self, tmp_path) -> None:
        from chirpbot.cogs.arrivals import Arrivals
        from chirpbot.utils.database import DatabaseManager

        bot = MagicMock()
        bot.db = DatabaseManager(str(tmp_path / "arrivals.db"))
        bot.config.arrival_cooldown_hours = 12
        bot.sound_pool = make_pool()
        cog = Arrivals(bot)

        ctx = make_ctx("Alice")
        asyncio.run(Arrivals.arrived._callback(cog, ctx))

        bot.player.play.assert_called_once_with(Path("/sounds/alice-arrived.mp3"))
        ctx.send.assert_awaited_once_with("Alice has arrived 📣")
        played_at = bot.db.get_mate("Alice")["last_played"]
        assert datetime.now(timezone.utc) - played_at < timedelta(minutes=5)

        again = make_ctx("Alice")
        asyncio.run(Arrivals.arrived._callback(cog, again))

        bot.player.play.assert_called_once()
        again.send.assert_awaited_once_with("You're already here Alice!")
        assert bot.db.get_mate("Alice")["last_played"] == played_at


class TestResponders:
    """Tests for configured text commands."""

    def test_load_responses(self, tmp_path) -> None:
        from chirpbot.cogs.responders import load_responses

        path = tmp_path / "commands.json"
        path.write_text(json.dumps([
            {"trigger": ["Discord", "dc"], "response": "Join {user}"},
            {"trigger": "lurk", "response": "Enjoy {user}"},
            {"response": "no trigger"},
        ]))

        responses = load_responses(path)

        assert responses == {
            "discord": "Join {user}",
            "dc": "Join {user}",
            "lurk": "Enjoy {user}",
        }

    def test_load_responses_bad_files(self, tmp_path) -> None:
        from chirpbot.cogs.responders import load_responses

        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        not_a_list = tmp_path / "dict.json"
        not_a_list.write_text(json.dumps({"trigger": "x"}))

        assert load_responses(None) == {}
        assert load_responses(tmp_path / "missing.json") == {}
        assert load_responses(broken) == {}
        assert load_responses(not_a_list) == {}

    def test_parse_command(self) -> None:
        from chirpbot.cogs.responders import parse_command

        assert parse_command("!Lurk now", "!") == "lurk"
        assert parse_command("hello", "!") is None
        assert parse_command("!", "!") is None

    def test_response_for(self) -> None:
        from chirpbot.cogs.responders import Responders

        cog = Responders(MagicMock(), responses={"lurk": "Enjoy the lurk {user}!"})

        assert cog.response_for("LURK", "alice") == "Enjoy the lurk alice!"
        assert cog.response_for("unknown", "alice") is None

    def test_command_aliases_are_not_answered(self) -> None:
        from chirpbot.cogs.responders import Responders

        bot = MagicMock()
        bot.config.prefix = "!"
        bot.get_command.side_effect = lambda name: object() if name in {"arrived", "arrive"} else None
        cog = Responders(bot, responses={"arrive": "shadowed", "lurk": "Enjoy {user}"})

        def message(content: str) -> MagicMock:
            msg = MagicMock()
            msg.echo = False
            msg.content = content
            msg.author.name = "alice"
            msg.channel.send = AsyncMock()
            return msg

        alias = message("!arrive")
        lurk = message("!lurk")
        asyncio.run(cog.event_message(alias))
        asyncio.run(cog.event_message(lurk))

        alias.channel.send.assert_not_awaited()
        lurk.channel.send.assert_awaited_once_with("Enjoy alice")


class TestTattoy:
    """Tests for terminal emotes."""

    def test_build_emote_message(self) -> None:
        from chirpbot.cogs.tattoy import MAX_REGEXISH_LENGTH, build_emote_message

        assert build_emote_message("alice", None) is None
        assert build_emote_message("alice", "   ") is None

        message = build_emote_message("alice", "LUL")
        assert (message.emote, message.regexish) == ("LUL", "alice")

        message = build_emote_message("alice", "Kappa  cargo build ")
        assert (message.emote, message.regexish) == ("Kappa", "cargo build")

        message = build_emote_message("alice", "LUL " + "x" * 200)
        assert len(message.regexish) == MAX_REGEXISH_LENGTH

    def test_encode(self) -> None:
        from chirpbot.utils.tattoy import EmoteMessage

        raw = EmoteMessage("alice", "nightly", "LUL").encode()

        assert raw.endswith(b"\n")
        assert json.loads(raw) == {"username": "alice", "regexish": "nightly", "emote": "LUL"}

    def test_send_delivers_json_line(self) -> None:
        from chirpbot.utils.tattoy import EmoteMessage, TattoyClient

        workdir = tempfile.mkdtemp()
        socket_path = str(Path(workdir) / "tattoy.sock")
        received: list[bytes] = []

        async def scenario() -> None:
            done = asyncio.Event()

            async def on_connect(reader, writer):
                received.append(await reader.readline())
                writer.close()
                done.set()

            server = await asyncio.start_unix_server(on_connect, path=socket_path)
            async with server:
                await TattoyClient(socket_path).send(EmoteMessage("alice", "nightly", "LUL"))
                await asyncio.wait_for(done.wait(), timeout=2)

        try:
            asyncio.run(scenario())
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        assert json.loads(received[0])["emote"] == "LUL"

    def test_send_without_plugin(self, tmp_path) -> None:
        from chirpbot.utils.tattoy import EmoteMessage, TattoyClient, TattoyUnavailableError

        client = TattoyClient(str(tmp_path / "nobody.sock"), timeout=0.5)

        with pytest.raises(TattoyUnavailableError):
            asyncio.run(client.send(EmoteMessage("alice", "alice", "LUL")))


class TestAlerts:
    """Tests for raid and follow alerts."""

    RAID = (
        "@badge-info=;display-name=Raider;login=raider;msg-id=raid;"
        "msg-param-displayName=Raider;msg-param-viewerCount=42 "
        ":tmi.twitch.tv USERNOTICE #Streamer"
    )

    def test_parse_usernotice(self) -> None:
        from chirpbot.cogs.alerts import parse_usernotice

        channel, tags = parse_usernotice(self.RAID)

        assert channel == "streamer"
        assert tags["msg-id"] == "raid"
        assert parse_usernotice(":someone PRIVMSG #streamer :hi") is None

    def test_raid_details(self) -> None:
        from chirpbot.cogs.alerts import raid_details

        assert raid_details({"msg-param-displayName": "Raider", "msg-param-viewerCount": "42"}) == ("Raider", 42)
        assert raid_details({"msg-param-viewerCount": "lots"}) == ("Someone", 0)

    def test_raid_plays_sound_and_welcomes_once(self) -> None:
        from chirpbot.cogs.alerts import Alerts

        bot = MagicMock()
        bot.config.raid_sound = "hand_of_god.mp3"
        bot.sound_pool = make_pool()
        channel = MagicMock()
        channel.send = AsyncMock()
        bot.get_channel.return_value = channel

        cog = Alerts(bot)

        async def scenario() -> None:
            await cog.event_raw_data(self.RAID)
            await cog.event_raw_data(self.RAID)

        asyncio.run(scenario())

        bot.player.play.assert_called_once_with(Path("/sounds/hand_of_god.mp3"))
        channel.send.assert_awaited_once_with("42 RAIDERS FROM Raider! 🎊")

    def test_new_followers_first_poll_only_learns(self) -> None:
        from chirpbot.cogs.alerts import Alerts

        cog = Alerts(MagicMock())

        assert cog.new_followers("streamer", ["Alice", "bob"]) == []
        assert cog.new_followers("streamer", ["alice", "bob", "Carol"]) == ["carol"]
        assert cog.new_followers("streamer", ["carol"]) == []
        assert cog.new_followers("other", ["dave"]) == []

    def test_follow_plays_sound_and_welcomes(self) -> None:
        from chirpbot.cogs.alerts import Alerts

        def follower(name: str) -> MagicMock:
            event = MagicMock()
            event.user.name = name
            return event

        bot = MagicMock()
        bot.config.follow_sound = "great_scott.mp3"
        bot.config.get_oauth_token_clean.return_value = "token"
        bot.sound_pool = make_pool()
        broadcaster = MagicMock()
        broadcaster.fetch_channel_followers = AsyncMock(
            side_effect=[[follower("alice")], [follower("alice"), follower("bob")]]
        )
        bot.fetch_users = AsyncMock(return_value=[broadcaster])
        channel = MagicMock()
        channel.send = AsyncMock()
        bot.get_channel.return_value = channel

        cog = Alerts(bot)

        async def scenario() -> None:
            await cog.check_followers("streamer")
            await cog.check_followers("streamer")

        asyncio.run(scenario())

        broadcaster.fetch_channel_followers.assert_awaited_with("token")
        bot.player.play.assert_called_once_with(Path("/sounds/great_scott.mp3"))
        channel.send.assert_awaited_once_with("Welcome bob ❤️")


class TestPlayback:
    """Tests for the external player wrapper."""

    def test_build_args(self) -> None:
        from chirpbot.utils.playback import SoundPlayer

        player = SoundPlayer("mpv", volume=70)

        assert player.build_args(Path("/s/a.mp3")) == ["mpv", "--volume=70", "--no-video", "/s/a.mp3"]

    def test_missing_file_is_skipped(self, tmp_path) -> None:
        from chirpbot.utils.playback import SoundPlayer

        assert SoundPlayer().play(tmp_path / "nope.mp3") is None

    def test_missing_player_is_skipped(self, tmp_path) -> None:
        from chirpbot.utils.playback import SoundPlayer

        sound = tmp_path / "a.mp3"
        sound.write_bytes(b"")

        assert SoundPlayer("definitely-not-a-real-player-binary").play(sound) is None
