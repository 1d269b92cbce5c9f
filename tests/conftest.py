"""
Pytest configuration and shared fixtures for integrated tests.

Provides a small Starlette site to drive in-process, an httpx mock site for
the crawler, and an in-memory browser driver for the remote session.
"""

import json
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urljoin, urlsplit

import httpx
import pytest
from bs4 import BeautifulSoup
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.routing import Route

from integrated.backends import InProcessDispatcher, RemoteSession, StatelessCrawler
from integrated.backends.remote import BrowserDriver, DriverElementMissing
from integrated.config import Config
from integrated.exceptions import NoAlertOpen

HOME_PAGE = """
<html><head><title>Home</title></head><body>
  <h1>Welcome home</h1>
  <a href="/about">About</a>
  <a href="/login">Log in</a>
  <a id="profile-link" name="profile" href="/about#team">Me</a>
  <a href="/missing">Broken link</a>
</body></html>
"""

LOGIN_PAGE = """
<html><head><title>Login</title></head><body>
  <form method="POST" action="/login">
    <input id="username" name="username" type="text">
    <input id="password" name="password" type="password">
    <input id="remember" name="remember" type="checkbox" value="yes">
    <button type="submit">Log In</button>
  </form>
</body></html>
"""

PREFERENCES_PAGE = """
<html><head><title>Preferences</title></head><body>
  <form method="GET" action="/preferences/save">
    <select id="color" name="color">
      <option value="r">Red</option>
      <option value="g" selected>Green</option>
      <option value="b">Blue</option>
    </select>
    <input id="newsletter" name="newsletter" type="checkbox" value="weekly" checked>
    <input name="size" type="radio" value="s" checked>
    <input name="size" type="radio" value="l">
    <textarea name="bio">Hello</textarea>
    <input type="submit" name="action" value="Save">
    <input type="submit" name="action" value="Reset">
  </form>
</body></html>
"""


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"<html><head><title>{title}</title></head><body>{body}</body></html>",
        status_code=status_code,
    )


async def _form(request: Request) -> Dict[str, str]:
    return dict(parse_qsl((await request.body()).decode()))


def create_demo_app() -> Starlette:
    """A tiny site with the usual shapes: links, forms, redirects, errors, JSON."""
    submissions: List[Dict[str, str]] = []

    async def home(request):
        return HTMLResponse(HOME_PAGE)

    async def about(request):
        return _page("About", "<h1>About us</h1><p>Our team</p>")

    async def login_form(request):
        return HTMLResponse(LOGIN_PAGE)

    async def login(request):
        form = await _form(request)
        submissions.append(form)
        if form.get("username") == "alice" and form.get("password") == "secret":
            return RedirectResponse(f"/dashboard?user={form['username']}", status_code=303)
        return _page("Login", "<p>Invalid credentials</p>")

    async def dashboard(request):
        return _page("Dashboard", f"<h1>Welcome, {request.query_params.get('user', 'guest')}</h1>")

    async def preferences(request):
        return HTMLResponse(PREFERENCES_PAGE)

    async def preferences_save(request):
        saved = dict(request.query_params)
        submissions.append(saved)
        return _page("Saved", f"<pre>{json.dumps(saved, sort_keys=True)}</pre>")

    async def old(request):
        return RedirectResponse("/new", status_code=302)

    async def new(request):
        return _page("New", "<p>You made it to the new page</p>")

    async def loop(request):
        return RedirectResponse("/loop", status_code=302)

    async def moved(request):
        return RedirectResponse("/echo", status_code=307)

    async def missing(request):
        return _page("Not Found", "<p>Nothing here</p>", status_code=404)

    async def broken(request):
        return _page("RuntimeError: database is down", "<h1>Whoops</h1>", status_code=500)

    async def users(request):
        if request.method == "POST":
            payload = await request.json()
            return JSONResponse({"id": 3, **payload}, status_code=201)
        return JSONResponse(
            [
                {"id": 1, "name": "alice", "roles": ["admin"]},
                {"id": 2, "name": "bob", "profile": {"city": "Lisbon", "active": True}},
            ]
        )

    async def echo(request):
        return JSONResponse(
            {
                "method": request.method,
                "form": await _form(request),
                "token": request.headers.get("x-token"),
            }
        )

    app = Starlette(
        routes=[
            Route("/", home),
            Route("/about", about),
            Route("/login", login_form, methods=["GET"]),
            Route("/login", login, methods=["POST"]),
            Route("/dashboard", dashboard),
            Route("/preferences", preferences),
            Route("/preferences/save", preferences_save),
            Route("/old", old),
            Route("/new", new),
            Route("/loop", loop),
            Route("/moved", moved, methods=["GET", "POST", "PUT"]),
            Route("/missing", missing),
            Route("/broken", broken),
            Route("/api/users", users, methods=["GET", "POST"]),
            Route("/echo", echo, methods=["GET", "POST", "PUT", "PATCH", "DELETE"]),
        ]
    )
    app.state.submissions = submissions
    return app


@pytest.fixture
def demo_app():
    return create_demo_app()


@pytest.fixture
def config(tmp_path) -> Config:
    """Config whose diagnostics land in a temporary directory."""
    return Config(
        log_path=str(tmp_path / "logs" / "output.txt"),
        screenshot_path=str(tmp_path / "logs" / "screenshot.png"),
    )


@pytest.fixture
def integrated_config(config) -> Config:
    """Overrides the plugin's session fixture so test-case tests stay in tmp_path."""
    return config


@pytest.fixture
def dispatcher(demo_app, config):
    backend = InProcessDispatcher(demo_app, config)
    yield backend
    backend.close()


class MockSite:
    """
    Routes for httpx.MockTransport. Records every request it receives.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes = {
            "/": (200, {}, "<html><body><a href='/about'>About</a><a href='/old'>Old</a></body></html>"),
            "/about": (200, {}, "<html><body><h1>About us</h1></body></html>"),
            "/old": (301, {"location": "/new"}, ""),
            "/new": (200, {}, "<html><body>New page</body></html>"),
            "/loop": (302, {"location": "/loop"}, ""),
            "/search": (200, {}, "<html><body><form action='/results'><input name='q'>"
                                 "<button>Search</button></form></body></html>"),
            "/upload": (200, {}, "<html><body><form method='post' action='/upload' enctype='multipart/form-data'>"
                                 "<input type='file' id='avatar' name='avatar'>"
                                 "<input type='submit' value='Upload'></form></body></html>"),
            "/feedback": (200, {}, "<html><body><form method='post' action='/feedback'><input name='message'>"
                                   "<button>Send</button></form></body></html>"),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/results":
            return httpx.Response(200, html=f"<html><body>Results for {request.url.params.get('q')}</body></html>")
        if request.method == "POST" and path == "/upload":
            return httpx.Response(200, html="<html><body>Uploaded</body></html>")
        if request.method == "POST" and path == "/feedback":
            return httpx.Response(307, headers={"location": "/feedback/received"})
        if path == "/feedback/received":
            if request.method != "POST":
                return httpx.Response(405, html="<html><body>Method Not Allowed</body></html>")
            message = dict(parse_qsl(request.content.decode()))["message"]
            return httpx.Response(200, html=f"<html><body>Thanks: {message}</body></html>")
        if path not in self.routes:
            return httpx.Response(404, html="<html><body>Not Found</body></html>")
        status, headers, body = self.routes[path]
        return httpx.Response(status, headers=headers, html=body)


@pytest.fixture
def mock_site() -> MockSite:
    return MockSite()


@pytest.fixture
def crawler(mock_site, config):
    backend = StatelessCrawler(config, transport=httpx.MockTransport(mock_site.handler))
    yield backend
    backend.close()


NOT_FOUND_HTML = "<html><body>Sorry, the page you are looking for could not be found.</body></html>"

XPATH_TEXT = re.compile(r"^//(\w+)\[normalize-space\(\.\)=[\"'](.*)[\"']\]$")


class FakeBrowserDriver(BrowserDriver):
    """
    In-memory stand-in for a live browser.

    Pages are static HTML keyed by URL path. Clicking a link opens its
    target; clicking a submit button records the form values the browser
    would send and opens the form's action.
    """

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.url: Optional[str] = None
        self.soup: Optional[BeautifulSoup] = None
        self.alerts: List[str] = []
        self.toggled: List[str] = []
        self.submitted: Optional[Dict[str, Any]] = None
        self.opened: List[str] = []
        self.closed = False

    def open(self, url: str) -> None:
        self.url = url
        self.opened.append(url)
        self.soup = BeautifulSoup(self.pages.get(urlsplit(url).path or "/", NOT_FOUND_HTML), "html.parser")

    def source(self) -> str:
        return str(self.soup)

    def current_url(self) -> str:
        return self.url

    def find(self, strategy: str, value: str) -> Any:
        element = None
        if strategy == "id":
            element = self.soup.find(id=value)
        elif strategy == "name":
            element = self.soup.find(attrs={"name": value})
        elif strategy == "css selector":
            element = self.soup.select_one(value)
        elif strategy == "link text":
            element = next((a for a in self.soup.find_all("a") if a.get_text(strip=True) == value), None)
        elif strategy == "xpath":
            match = XPATH_TEXT.match(value)
            if match:
                tag, text = match.groups()
                element = next((e for e in self.soup.find_all(tag) if e.get_text(strip=True) == text), None)
        if element is None:
            raise DriverElementMissing(f"{strategy}={value}")
        return element

    def click(self, element: Any) -> None:
        if element.name == "a":
            self.open(urljoin(self.url, element.get("href", "")))
            return

        input_type = (element.get("type") or "text").lower()
        if element.name == "input" and input_type == "checkbox":
            self.toggled.append(element.get("name"))
            if element.has_attr("checked"):
                del element["checked"]
            else:
                element["checked"] = ""
        elif element.name == "input" and input_type == "radio":
            for radio in self.soup.find_all("input", attrs={"type": "radio", "name": element.get("name")}):
                if radio.has_attr("checked"):
                    del radio["checked"]
            element["checked"] = ""
        elif element.name == "button" or input_type == "submit":
            self._submit(element.find_parent("form"), element)

    def set_value(self, element: Any, value: str) -> None:
        if element.name == "textarea":
            element.string = value
        else:
            element["value"] = value

    def is_checked(self, element: Any) -> bool:
        return element.has_attr("checked")

    def tag_name(self, element: Any) -> str:
        return element.name

    def attribute(self, element: Any, name: str) -> Optional[str]:
        return element.get(name)

    def select_option(self, element: Any, option: str) -> None:
        options = element.find_all("option")
        chosen = next((o for o in options if o.get("value") == option), None)
        if chosen is None:
            chosen = next((o for o in options if o.get_text(strip=True) == option), None)
        if chosen is None:
            raise DriverElementMissing(option)
        for o in options:
            if o.has_attr("selected"):
                del o["selected"]
        chosen["selected"] = ""

    def attach_file(self, element: Any, path: str) -> None:
        element["value"] = path

    def submit(self, element: Any) -> None:
        self._submit(element, None)

    def _submit(self, form, button) -> None:
        values: Dict[str, Any] = {}
        for element in form.find_all(["input", "select", "textarea"]):
            name = element.get("name")
            if not name:
                continue
            if element.name == "select":
                selected = element.find("option", selected=True) or element.find("option")
                values[name] = selected.get("value")
            elif element.name == "textarea":
                values[name] = element.get_text()
            elif element.get("type") in ("checkbox", "radio"):
                if element.has_attr("checked"):
                    values[name] = element.get("value", "on")
            elif element.get("type") != "submit":
                values[name] = element.get("value", "")
        if button is not None and button.get("name"):
            values[button["name"]] = button.get("value", "")
        self.submitted = values
        self.open(urljoin(self.url, form.get("action") or self.url))

    def alert_text(self) -> str:
        if not self.alerts:
            raise NoAlertOpen("No alert box is open.")
        return self.alerts[-1]

    def accept_alert(self) -> None:
        if not self.alerts:
            raise NoAlertOpen("No alert box is open.")
        self.alerts.pop()

    def screenshot(self) -> bytes:
        return b"\x89PNG\r\n\x1a\nfake"

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_driver() -> FakeBrowserDriver:
    return FakeBrowserDriver(
        {
            "/": HOME_PAGE,
            "/about": "<html><body><h1>About us</h1></body></html>",
            "/login": LOGIN_PAGE,
            "/preferences": PREFERENCES_PAGE,
            "/preferences/save": "<html><body>Saved</body></html>",
            "/dashboard": "<html><body>Welcome back</body></html>",
        }
    )


@pytest.fixture
def remote(fake_driver, config):
    backend = RemoteSession(config, driver_factory=lambda remote_config: fake_driver)
    yield backend
    backend.close()
