import pytest

from wildbow_epub import decode_cfemail, deobfuscate_emails

S5 = '<a class="__cf_email__" data-cfemail="54213b3a20273514393525393520327a373b39">[email&nbsp;protected]</a>'


def _encode(address, key=0x42):
    return f"{key:02x}" + bytes(b ^ key for b in address.encode("utf-8")).hex()


def test_decode_known_payload():
    assert decode_cfemail("54213b3a20273514393525393520327a373b39") == "uontsa@maqmatf.com"


def test_anchor_replaced_and_surroundings_untouched():
    text = f"<p>Write to {S5} for details.</p>"
    assert deobfuscate_emails(text) == "<p>Write to uontsa@maqmatf.com for details.</p>"


def test_roundtrip_with_arbitrary_key_and_utf8():
    payload = _encode("wildbow@gmail.com", key=0x9c)
    anchor = f'<a href="/cdn-cgi/l/email-protection" data-cfemail="{payload.upper()}">[email&nbsp;protected]</a>'
    assert deobfuscate_emails(anchor) == "wildbow@gmail.com"
    assert decode_cfemail(_encode("rené@example.org")) == "rené@example.org"


def test_multiple_matches_and_literal_nbsp():
    a = f'<a data-cfemail="{_encode("a@b.co")}">[email\xa0protected]</a>'
    b = f'<a data-cfemail="{_encode("c@d.io")}">[email&nbsp;protected]</a>'
    assert deobfuscate_emails(f"{a} and {b}.") == "a@b.co and c@d.io."


def test_anchor_without_payload_left_as_is():
    text = '<a class="x">[email&nbsp;protected]</a> <a data-cfemail="zz">[email&nbsp;protected]</a>'
    assert deobfuscate_emails(text) == text


def test_short_or_odd_payload_left_as_is():
    for payload in ("54", "543", ""):
        text = f'<a data-cfemail="{payload}">[email&nbsp;protected]</a>'
        assert deobfuscate_emails(text) == text
    with pytest.raises(ValueError):
        decode_cfemail("54")


def test_idempotent():
    text = f"<p>{S5}</p><p>{S5}</p><p>plain</p>"
    once = deobfuscate_emails(text)
    assert deobfuscate_emails(once) == once
    assert deobfuscate_emails("no anchors here") == "no anchors here"
