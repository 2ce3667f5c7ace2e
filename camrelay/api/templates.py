"""HTML pages served by the pages router."""

from html import escape
from string import Template

_BASE_STYLE = """
        body { font-family: sans-serif; display: flex; flex-direction: column; align-items: center;
               justify-content: center; min-height: 100vh; background-color: #f0f0f0; margin: 0; }
        h1 { color: #333; }
"""

LOGIN_PAGE = Template("""<!DOCTYPE html>
<html>
<head>
    <title>Login to CCTV Stream</title>
    <style>
$base_style
        .login-container { background-color: #fff; padding: 30px; border-radius: 8px;
                           box-shadow: 0 4px 8px rgba(0,0,0,0.1); text-align: center; }
        input[type="text"], input[type="password"] { width: calc(100% - 20px); padding: 10px;
                           margin-bottom: 15px; border: 1px solid #ddd; border-radius: 4px; }
        button { background-color: #007bff; color: white; padding: 10px 20px; border: none;
                 border-radius: 4px; cursor: pointer; font-size: 1em; }
        button:hover { background-color: #0056b3; }
        #message { color: red; margin-top: 10px; }
    </style>
</head>
<body>
    <div class="login-container">
        <h1>Login to Access Stream</h1>
        <form id="loginForm">
            <input type="text" id="username" placeholder="Username" autocomplete="username" required><br>
            <input type="password" id="password" placeholder="Password" autocomplete="current-password" required><br>
            <button type="submit">Login</button>
        </form>
        <p id="message"></p>
    </div>

    <script>
        const messageElement = document.getElementById('message');

        async function openStreamPage(accessToken) {
            const response = await fetch('/stream-page', {
                headers: { 'Authorization': 'Bearer ' + accessToken }
            });
            if (!response.ok) {
                localStorage.removeItem('accessToken');
                messageElement.textContent = 'Session expired. Please log in again.';
                return;
            }
            const html = await response.text();
            document.open();
            document.write(html);
            document.close();
        }

        document.getElementById('loginForm').addEventListener('submit', async (event) => {
            event.preventDefault();
            const username = document.getElementById('username').value;
            const password = document.getElementById('password').value;

            try {
                const response = await fetch('/login', {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    body: JSON.stringify({ username, password })
                });
                const data = await response.json();

                if (response.ok) {
                    localStorage.setItem('accessToken', data.token);
                    messageElement.style.color = 'green';
                    messageElement.textContent = 'Login successful! Redirecting...';
                    await openStreamPage(data.token);
                } else {
                    messageElement.style.color = 'red';
                    messageElement.textContent = data.message || 'Login failed.';
                }
            } catch (error) {
                messageElement.style.color = 'red';
                messageElement.textContent = 'Network error or server unavailable.';
            }
        });
    </script>
</body>
</html>
""")

STREAM_PAGE = Template("""<!DOCTYPE html>
<html>
<head>
    <title>CCTV Live Stream</title>
    <style>
$base_style
        #streamImg { border: 2px solid #333; max-width: 90%; height: auto; display: block; margin-top: 20px; }
        p { margin-top: 10px; color: #555; }
        .logout-button { margin-top: 20px; padding: 10px 20px; background-color: #dc3545; color: white;
                         border: none; border-radius: 4px; cursor: pointer; }
        .logout-button:hover { background-color: #c82333; }
    </style>
</head>
<body>
    <h1>Live Webcam Stream for $username</h1>
    <img id="streamImg" alt="Webcam Stream" />
    <p>If the stream doesn't load, ensure the webcam is connected and configured, and that you are logged in.</p>
    <button class="logout-button" onclick="localStorage.removeItem('accessToken'); window.location.href = '/login';">Logout</button>

    <script>
        const accessToken = localStorage.getItem('accessToken');
        if (accessToken) {
            document.getElementById('streamImg').src = '/stream?token=' + encodeURIComponent(accessToken);
        } else {
            window.location.href = '/login';
        }
    </script>
</body>
</html>
""")


def render_login_page() -> str:
    return LOGIN_PAGE.substitute(base_style=_BASE_STYLE)


def render_stream_page(username: str) -> str:
    return STREAM_PAGE.substitute(base_style=_BASE_STYLE, username=escape(username))
