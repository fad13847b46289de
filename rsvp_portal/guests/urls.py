INVITATION_URL = "/invitations/{token}"
PUBLIC_RSVP_URL = "/public-rsvp/{event_id}"
