import asyncio

import pytest

from wallet_session.core.session import TransientStatus


@pytest.mark.asyncio
async def test_message_clears_after_window():
    status = TransientStatus(ttl_seconds=0.05)

    status.set("Connected")
    assert status.message == "Connected"
    assert status.is_pending is True

    await asyncio.sleep(0.15)

    assert status.message == ""
    assert status.is_pending is False


@pytest.mark.asyncio
async def test_new_message_restarts_window():
    """A second message inside the window gets a full window of its own."""
    status = TransientStatus(ttl_seconds=0.3)

    status.set("Switching network…")
    await asyncio.sleep(0.15)
    status.set("Switched to Sepolia Testnet")

    # Past the first message's deadline, inside the second's
    await asyncio.sleep(0.25)
    assert status.message == "Switched to Sepolia Testnet"

    await asyncio.sleep(0.2)
    assert status.message == ""


@pytest.mark.asyncio
async def test_expiry_callback_runs_once():
    expired = []

    async def on_expire():
        expired.append(True)

    status = TransientStatus(ttl_seconds=0.05, on_expire=on_expire)
    status.set("first")
    status.set("second")

    await asyncio.sleep(0.15)

    assert expired == [True]


@pytest.mark.asyncio
async def test_failing_callback_still_clears_message():
    async def on_expire():
        raise RuntimeError("observer gone")

    status = TransientStatus(ttl_seconds=0.05, on_expire=on_expire)
    status.set("Sending…")

    await asyncio.sleep(0.15)

    assert status.message == ""


@pytest.mark.asyncio
async def test_empty_message_starts_no_timer():
    status = TransientStatus(ttl_seconds=0.05)

    status.set("")

    assert status.is_pending is False


@pytest.mark.asyncio
async def test_clear_and_close():
    status = TransientStatus(ttl_seconds=0.05)

    status.set("Reconnected")
    status.close()
    await asyncio.sleep(0.1)
    # Closing stops the timer but leaves the message in place
    assert status.message == "Reconnected"

    status.clear()
    assert status.message == ""
