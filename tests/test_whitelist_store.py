"""
Tests for whitelist persistence.
"""

import pytest

from offhours.infrastructure.whitelist_store import load_whitelist, replace_whitelist


class TestWhitelistStore:
    """Tests for loading and replacing the persisted whitelist."""

    @pytest.mark.asyncio
    async def test_empty_by_default(self, test_session):
        assert await load_whitelist(test_session) == []

    @pytest.mark.asyncio
    async def test_replace_and_load(self, test_session):
        await replace_whitelist(test_session, ["b@g.us", "a@g.us"])

        assert await load_whitelist(test_session) == ["a@g.us", "b@g.us"]

    @pytest.mark.asyncio
    async def test_replace_overwrites(self, test_session):
        await replace_whitelist(test_session, ["a@g.us"])
        await replace_whitelist(test_session, ["c@g.us"])

        assert await load_whitelist(test_session) == ["c@g.us"]
