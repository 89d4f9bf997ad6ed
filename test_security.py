from schemas import SignupRequest, TaskCreate


# --- Test 1: Security Headers ---
def test_security_headers(client):
    """
    Verify that the SecurityHeadersMiddleware adds the expected headers.
    """
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Task Tracker API is running"}
    headers = response.headers

    assert "default-src 'self'" in headers["content-security-policy"]
    assert headers.get("x-content-type-options") == "nosniff"
    assert headers.get("x-frame-options") == "DENY"


# --- Test 2: Trusted hosts ---
def test_untrusted_host_is_rejected(client):
    response = client.get("/", headers={"Host": "evil.example.com"})
    assert response.status_code == 400


# --- Test 3: CORS ---
def test_cors_allows_configured_origin(client):
    response = client.options(
        "/tasks",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


# --- Test 4: Input Sanitization (Bleach / XSS) ---
def test_input_sanitization():
    """
    Verify that HTML tags are stripped from Task inputs.
    """
    unsafe_input = "<script>alert('XSS')</script>Meeting<b onmouseover=alert(1)>bold</b>"

    task = TaskCreate(title=unsafe_input, description="<i>notes</i>")

    assert "<script>" not in task.title
    assert "<b" not in task.title
    # Inhalt bleibt erhalten (strip=True entfernt nur die Tags)
    assert "Meeting" in task.title
    assert "bold" in task.title
    assert task.description == "notes"


def test_signup_name_sanitized():
    assert SignupRequest(name="<em>Eve</em>", email="e@example.com", password="x").name == "Eve"


def test_stored_task_is_sanitized(client, signup):
    _, _, headers = signup()
    res = client.post("/tasks", json={"title": "<img src=x onerror=alert(1)>Plan"}, headers=headers)
    assert res.status_code == 201
    assert res.json()["title"] == "Plan"


# --- Test 5: Error responses leak nothing ---
def test_bad_task_id_returns_message_only(client, signup):
    _, _, headers = signup()
    res = client.get("/tasks/not-a-number", headers=headers)
    assert res.status_code == 400
    assert set(res.json()) == {"message"}


# --- Test 6: Sanitizing keeps plain text intact ---
def test_sanitize_keeps_special_characters():
    task = TaskCreate(title="Tom & Jerry", description="a < b > c")
    assert task.title == "Tom & Jerry"
    assert task.description == "a < b > c"


def test_encoded_markup_cannot_come_back():
    task = TaskCreate(title="&lt;script&gt;alert(1)&lt;/script&gt;Plan", description="&lt;b onclick=x&gt;hi&lt;/b&gt;")
    assert "<script" not in task.title
    assert "Plan" in task.title
    assert "<b" not in task.description
    assert "hi" in task.description
