INVITE_URL = "/api/{invite_id}"
GET_INVITE_URL = INVITE_URL
UPDATE_INVITE_URL = INVITE_URL
