"""End-to-end tests: nearby search to inquiry to inbox."""

import pytest
from api.inbox import enquiries, send, threads
from api.inquiries import handler as inquiries_handler
from api.jobs import nearby
from tests.utils.factories import DOWNTOWN_SD, create_inquiry_payload
from tests.utils.assertions import assert_nearest_first, assert_valid_thread
from tests.utils.helpers import call_handler, viewer_headers


@pytest.mark.integration
@pytest.mark.e2e
def test_talent_finds_listing_and_contacts_owner(marketplace):
    """Test the full contact flow across both sides of the marketplace."""
    talent = marketplace["talent"]["user_id"]
    employer = marketplace["legacy_employer"]["user_id"]
    listing_id = marketplace["legacy"]["listing_id"]

    # Search near downtown; every seeded listing sits there.
    status, _, found = call_handler(
        nearby.handler, "GET", f"/api/jobs/nearby?lat={DOWNTOWN_SD[0]}&lng={DOWNTOWN_SD[1]}&radius=5",
    )
    assert status == 200
    assert listing_id in [item["listing"]["listing_id"] for item in found["listings"]]
    assert_nearest_first(found, 5)

    # Inquire twice (double click) against the profile-owned listing.
    for _ in range(2):
        status, _, _ = call_handler(
            inquiries_handler, "POST", "/api/inquiries",
            body=create_inquiry_payload(listing_id), headers=viewer_headers(talent, role="talent"),
        )
        assert status == 200
    assert len(marketplace["store"].rows("inquiries")) == 1

    # Employer sees it on the received side without any stored preference.
    status, _, received = call_handler(enquiries.handler, "GET", "/api/inbox/enquiries", headers=viewer_headers(employer))
    assert status == 200
    assert received["view"] == "received"
    assert [i["listing_id"] for i in received["inquiries"]] == [listing_id]

    # Employer replies; both sides see one thread keyed from their own perspective.
    status, _, _ = call_handler(
        send.handler, "POST", "/api/inbox/send",
        body={"recipientId": talent, "listingId": listing_id, "body": "Come by Tuesday"},
        headers=viewer_headers(employer),
    )
    assert status == 201

    _, _, talent_inbox = call_handler(threads.handler, "GET", "/api/inbox/threads", headers=viewer_headers(talent))
    _, _, employer_inbox = call_handler(threads.handler, "GET", "/api/inbox/threads", headers=viewer_headers(employer))

    assert [t["key"] for t in talent_inbox["threads"]] == [f"{employer}__{listing_id}"]
    assert [t["key"] for t in employer_inbox["threads"]] == [f"{talent}__{listing_id}"]
    assert talent_inbox["view"] == "sent"
    assert_valid_thread(talent_inbox["threads"][0], talent)
    assert_valid_thread(employer_inbox["threads"][0], employer)

    # Employer removes the inquiry; talent can then start over.
    inquiry_id = received["inquiries"][0]["inquiry_id"]
    status, _, _ = call_handler(inquiries_handler, "DELETE", f"/api/inquiries?id={inquiry_id}", headers=viewer_headers(employer))
    assert status == 200
    assert marketplace["store"].rows("inquiries") == []
