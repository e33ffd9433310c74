from refugee_bot.core.identity import derive_session_key, mask_phone_number

SENDER = "whatsapp:+256700123489"


def test_session_key_is_deterministic():
    assert derive_session_key(SENDER) == derive_session_key(SENDER)


def test_session_key_does_not_expose_identity():
    key = derive_session_key(SENDER)
    assert key != SENDER
    assert "256700123489" not in key
    assert key.startswith("user-")


def test_different_senders_get_different_keys():
    assert derive_session_key(SENDER) != derive_session_key("whatsapp:+256700123488")


def test_mask_phone_number():
    assert mask_phone_number(SENDER) == "+2***89"
    assert mask_phone_number("+256700123489") == "+2***89"
    assert mask_phone_number("12") == "***"


def test_mask_and_session_key_differ():
    assert mask_phone_number(SENDER) != derive_session_key(SENDER)
