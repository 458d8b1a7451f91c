from localboard_api.services.notifications import render_approved, render_rejected, render_submission_received

EVENT = {
    "title": "Chili <cook-off>",
    "date": "2026-10-01",
    "location": "Park pavilion",
    "neighborhood": "Ballard",
    "city": "Seattle",
    "internal_id": "tok_123",
}


def test_submission_received_includes_removal_code() -> None:
    mail = render_submission_received("events", EVENT)
    assert mail.subject == 'We received your event "Chili <cook-off>"'
    assert "tok_123" in mail.html
    assert "Chili &lt;cook-off&gt;" in mail.html
    assert "<cook-off>" not in mail.html


def test_approved_mail_says_listing_is_live() -> None:
    mail = render_approved("services", {"title": "Tax help", "owner": "Rae"})
    assert mail.subject == 'Your service "Tax help" has been approved!'
    assert "now live" in mail.html
    assert "Rae" in mail.html


def test_rejected_mail_lists_each_dimension_and_invites_resubmission() -> None:
    mail = render_rejected("events", EVENT, ["Content: Looks like an ad", "Image: Not suitable for all ages"])
    assert "needs review" in mail.subject
    assert "<li>Content: Looks like an ad</li>" in mail.html
    assert "<li>Image: Not suitable for all ages</li>" in mail.html
    assert "submit it again" in mail.html
