"""Fakes for the network-facing collaborators: web, object store and AI clients."""

import copy

import httpx

STORAGE_URL = "https://storage.test"
BUCKET = "recipe-images"
PUBLIC_PREFIX = f"{STORAGE_URL}/storage/v1/object/public/{BUCKET}/"
OBJECT_PREFIX = f"{STORAGE_URL}/storage/v1/object/{BUCKET}/"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
ENHANCED_PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x01" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


class FakeWeb:
    """In-memory stand-in for remote web pages, remote images and the object store."""

    def __init__(self):
        self.resources: dict[str, tuple[int, dict[str, str], bytes]] = {}
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_uploads = False
        self.fail_deletes = False
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        body: bytes | str,
        content_type="text/html; charset=utf-8",
        status=200,
        headers: dict[str, str] | None = None,
    ):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.resources[url] = (status, {"content-type": content_type, **(headers or {})}, body)

    def put_object(self, path: str, data: bytes = PNG_BYTES, mime: str = "image/png") -> str:
        """Place an object in the store directly and return its public URL."""
        self.objects[path] = (data, mime)
        return PUBLIC_PREFIX + path

    def public_url(self, path: str) -> str:
        return PUBLIC_PREFIX + path

    def requests_to(self, method: str, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url).startswith(prefix)]

    @property
    def uploads(self) -> list[httpx.Request]:
        return self.requests_to("POST", OBJECT_PREFIX)

    @property
    def deletes(self) -> list[httpx.Request]:
        return self.requests_to("DELETE", OBJECT_PREFIX)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url.startswith(PUBLIC_PREFIX) and request.method == "GET":
            stored = self.objects.get(url[len(PUBLIC_PREFIX) :])
            if stored is None:
                return httpx.Response(404, json={"error": "not_found"})
            data, mime = stored
            return httpx.Response(200, content=data, headers={"content-type": mime})

        if url.startswith(OBJECT_PREFIX):
            path = url[len(OBJECT_PREFIX) :]
            if request.method == "POST":
                if self.fail_uploads:
                    return httpx.Response(503, json={"error": "unavailable"})
                if path in self.objects:
                    return httpx.Response(409, json={"error": "Duplicate"})
                self.objects[path] = (request.content, request.headers["content-type"])
                return httpx.Response(200, json={"Key": f"{BUCKET}/{path}"})
            if request.method == "DELETE":
                if self.fail_deletes:
                    return httpx.Response(503, json={"error": "unavailable"})
                if self.objects.pop(path, None) is None:
                    return httpx.Response(404, json={"error": "not_found"})
                return httpx.Response(200, json={"message": "Successfully deleted"})

        if url in self.resources:
            status, headers, body = self.resources[url]
            return httpx.Response(status, content=body, headers=headers)
        return httpx.Response(404, text="Not Found")


class FakeExtractionClient:
    """Returns a configured tool payload instead of calling the API."""

    is_configured = True

    def __init__(self):
        self.payload: dict | None = None
        self.error: Exception | None = None
        self.calls: list[dict] = []

    async def extract(self, system_prompt, content, tool):
        self.calls.append({"system_prompt": system_prompt, "content": content, "tool": tool})
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.payload)


class FakeImageClient:
    """Returns fixed image bytes instead of calling the API."""

    is_configured = True

    def __init__(self):
        self.result: bytes | None = ENHANCED_PNG_BYTES
        self.calls: list[dict] = []

    async def edit(self, image, mime, prompt):
        self.calls.append({"image": image, "mime": mime, "prompt": prompt})
        return self.result

