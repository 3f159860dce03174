import pytest

from cagecycle.bot import load_token, resolve_guild_id


def test_load_token_reads_discord_section():
    assert load_token({"discord": {"token": "abc"}}) == "abc"


@pytest.mark.parametrize("config", [{}, {"discord": None}, {"discord": {"token": ""}}])
def test_load_token_requires_token(config):
    with pytest.raises(RuntimeError):
        load_token(config)


@pytest.mark.parametrize(
    "config, expected",
    [
        ({}, None),
        ({"discord": {"guild_id": ""}}, None),
        ({"discord": {"guild_id": "1234"}}, 1234),
        ({"discord": {"guild_id": 99}}, 99),
        ({"discord": {"guild_id": "abc"}}, None),
    ],
)
def test_resolve_guild_id(config, expected):
    assert resolve_guild_id(config) == expected
