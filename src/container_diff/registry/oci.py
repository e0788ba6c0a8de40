"""OCI registry client implementation."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

import httpx

from container_diff.models.image import ImageLayout
from container_diff.registry.base import (
    RegistryAuth,
    RegistryAuthError,
    RegistryError,
    RegistryNotFoundError,
    build_history,
    parse_reference,
)
from container_diff.utils.hashing import parse_digest
from container_diff.utils.logging import get_logger

logger = get_logger("registry.oci")


class OCIRegistry:
    """Image source for OCI-compliant container registries.

    Implements the parts of the OCI Distribution Specification needed to
    pull an image: manifest (or manifest list) negotiation, bearer-token
    authentication, the config blob and the layer blobs.

    Example:
        registry = OCIRegistry()
        layout = registry.fetch("gcr.io/google-appengine/python:latest", Path("/tmp/work"))
    """

    # Well-known registry URLs
    REGISTRY_URLS = {
        "docker.io": "https://registry-1.docker.io",
        "index.docker.io": "https://registry-1.docker.io",
        "registry-1.docker.io": "https://registry-1.docker.io",
    }

    # Media types
    MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
    MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
    OCI_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
    OCI_INDEX = "application/vnd.oci.image.index.v1+json"

    def __init__(
        self,
        auth: RegistryAuth | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        insecure_registries: list[str] | None = None,
        platform: tuple[str, str] = ("linux", "amd64"),
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the OCI registry client.

        Args:
            auth: Authentication credentials (read from the environment if None)
            timeout: Request timeout in seconds
            max_retries: Maximum number of connection retry attempts
            insecure_registries: Registries to reach over plain HTTP
            platform: (os, architecture) picked from manifest lists
            transport: Custom httpx transport, mainly for tests
        """
        self._auth = auth or RegistryAuth.from_env()
        self._timeout = timeout
        self._max_retries = max_retries
        self._insecure = set(insecure_registries or [])
        self._platform = platform
        self._transport = transport
        self._token_cache: dict[str, str] = {}

    def _get_registry_url(self, registry: str | None) -> str:
        """Get the registry URL for a registry hostname."""
        if not registry:
            return self.REGISTRY_URLS["docker.io"]

        if registry in self.REGISTRY_URLS:
            return self.REGISTRY_URLS[registry]

        scheme = "http" if registry in self._insecure else "https"
        return f"{scheme}://{registry}"

    def _get_client(self) -> httpx.Client:
        """Create an HTTP client with retry support."""
        transport = self._transport or httpx.HTTPTransport(retries=self._max_retries)
        return httpx.Client(
            timeout=self._timeout,
            transport=transport,
            follow_redirects=True,
        )

    def _get_token(self, client: httpx.Client, www_authenticate: str, repository: str) -> str:
        """Get a bearer token for authentication.

        Args:
            client: HTTP client
            www_authenticate: WWW-Authenticate header value
            repository: Repository name for scope

        Returns:
            Bearer token
        """
        # Format: Bearer realm="...",service="...",scope="..."
        params = {}
        for part in www_authenticate[len("Bearer "):].split(","):
            if "=" in part:
                key, value = part.split("=", 1)
                params[key.strip()] = value.strip().strip('"')

        realm = params.get("realm")
        if not realm:
            raise RegistryAuthError("No realm in WWW-Authenticate header")

        token_params = {
            "service": params.get("service", ""),
            "scope": f"repository:{repository}:pull",
        }

        auth = None
        if self._auth:
            if self._auth.token:
                return self._auth.token
            elif self._auth.username and self._auth.password:
                auth = (self._auth.username, self._auth.password)

        response = client.get(realm, params=token_params, auth=auth)

        if response.status_code == 401:
            raise RegistryAuthError("Token authentication failed")
        elif response.status_code != 200:
            raise RegistryError(f"Token request failed: {response.status_code}")

        data = response.json()
        return data.get("token") or data.get("access_token", "")

    def _authorize(
        self,
        client: httpx.Client,
        response: httpx.Response,
        repository: str,
        headers: dict[str, str],
    ) -> bool:
        """Fetch a token after a 401 and add it to ``headers``.

        Returns:
            True if the request should be retried
        """
        www_auth = response.headers.get("www-authenticate", "")
        if not www_auth.lower().startswith("bearer"):
            return False
        token = self._get_token(client, www_auth, repository)
        self._token_cache[repository] = token
        headers["Authorization"] = f"Bearer {token}"
        return True

    def _request(
        self,
        client: httpx.Client,
        method: str,
        url: str,
        repository: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an authenticated request to the registry.

        Args:
            client: HTTP client
            method: HTTP method
            url: Request URL
            repository: Repository name (for token scope)
            headers: Additional headers
            **kwargs: Additional request arguments

        Returns:
            HTTP response
        """
        headers = dict(headers or {})

        if repository in self._token_cache:
            headers["Authorization"] = f"Bearer {self._token_cache[repository]}"

        response = client.request(method, url, headers=headers, **kwargs)

        if response.status_code == 401 and self._authorize(client, response, repository, headers):
            response = client.request(method, url, headers=headers, **kwargs)

        return response

    def _locate(self, reference: str) -> tuple[str, str, str]:
        """Split a reference into registry URL, repository and tag or digest."""
        parsed = parse_reference(reference)
        registry_url = self._get_registry_url(parsed["registry"])
        repository = parsed["repository"] or reference
        tag = parsed["digest"] or parsed["tag"] or "latest"

        # Handle Docker Hub library images
        if "docker.io" in registry_url and "/" not in repository:
            repository = f"library/{repository}"

        return registry_url, repository, tag

    @staticmethod
    def _check_status(response: httpx.Response, what: str) -> None:
        if response.status_code == 404:
            raise RegistryNotFoundError(what)
        elif response.status_code in (401, 403):
            raise RegistryAuthError(f"Authentication failed for {what}")
        elif response.status_code != 200:
            raise RegistryError(f"Failed to get {what}: HTTP {response.status_code}")

    def get_manifest(self, reference: str) -> dict[str, Any]:
        """Get the image manifest, resolving manifest lists to one platform.

        Args:
            reference: Image reference (e.g., "nginx:latest")

        Returns:
            The parsed image manifest
        """
        registry_url, repository, tag = self._locate(reference)
        url = f"{registry_url}/v2/{repository}/manifests/{tag}"
        accept = ", ".join([self.MANIFEST_V2, self.OCI_MANIFEST, self.MANIFEST_LIST, self.OCI_INDEX])

        with self._get_client() as client:
            response = self._request(client, "GET", url, repository, headers={"Accept": accept})
            self._check_status(response, reference)

            data = response.json()
            media_type = data.get("mediaType") or response.headers.get("content-type", "")

            if media_type in (self.MANIFEST_LIST, self.OCI_INDEX) or "manifests" in data:
                digest = self._select_platform(data.get("manifests", []), reference)
                url = f"{registry_url}/v2/{repository}/manifests/{digest}"
                response = self._request(client, "GET", url, repository, headers={"Accept": accept})
                self._check_status(response, f"{reference}@{digest}")
                data = response.json()

        return data

    def _select_platform(self, manifests: list[dict[str, Any]], reference: str) -> str:
        os_name, arch = self._platform
        for m in manifests:
            platform = m.get("platform", {})
            if platform.get("architecture") == arch and platform.get("os") == os_name:
                return m["digest"]
        raise RegistryNotFoundError(f"{reference} for platform {os_name}/{arch}")

    def get_config(self, reference: str, manifest: dict[str, Any]) -> dict[str, Any]:
        """Fetch the image config blob referenced by a manifest."""
        registry_url, repository, _ = self._locate(reference)
        digest = manifest.get("config", {}).get("digest")
        if not digest:
            raise RegistryError(f"Manifest for {reference} has no config blob")

        url = f"{registry_url}/v2/{repository}/blobs/{digest}"
        with self._get_client() as client:
            response = self._request(client, "GET", url, repository)
            self._check_status(response, f"config blob {digest}")
            return response.json()

    def pull_layer(self, reference: str, digest: str, dest: Path) -> int:
        """Stream a layer blob to ``dest``, verifying its digest.

        Args:
            reference: Image reference
            digest: Layer digest
            dest: Destination path

        Returns:
            Number of bytes written
        """
        registry_url, repository, _ = self._locate(reference)
        url = f"{registry_url}/v2/{repository}/blobs/{digest}"
        algorithm, expected = parse_digest(digest)
        hasher = hashlib.new(algorithm)
        written = 0

        with self._get_client() as client:
            headers: dict[str, str] = {}
            if repository in self._token_cache:
                headers["Authorization"] = f"Bearer {self._token_cache[repository]}"

            for attempt in range(2):
                with client.stream("GET", url, headers=headers) as response:
                    if response.status_code == 401 and attempt == 0:
                        response.read()
                        if self._authorize(client, response, repository, headers):
                            continue
                    self._check_status(response, f"layer {digest}")
                    with open(dest, "wb") as f:
                        for chunk in response.iter_bytes():
                            hasher.update(chunk)
                            f.write(chunk)
                            written += len(chunk)
                break

        if expected and hasher.hexdigest() != expected:
            raise RegistryError(f"Digest mismatch for layer {digest}", code="DIGEST_MISMATCH")
        return written

    def fetch(self, reference: str, dest: Path) -> ImageLayout:
        """Download the layers and history of a remote image.

        Args:
            reference: Remote image reference
            dest: Existing directory to write layer blobs into

        Returns:
            Layer paths and build history
        """
        try:
            manifest = self.get_manifest(reference)
            config = self.get_config(reference, manifest)

            layers: list[Path] = []
            sizes: list[int] = []
            for index, layer in enumerate(manifest.get("layers", [])):
                media_type = layer.get("mediaType", "")
                if "zstd" in media_type:
                    raise RegistryError(f"Unsupported layer media type: {media_type}")
                target = dest / f"{index:03d}.tar"
                logger.debug(f"Pulling layer {layer.get('digest')} of {reference}")
                self.pull_layer(reference, layer["digest"], target)
                layers.append(target)
                sizes.append(layer.get("size", target.stat().st_size))
        except httpx.HTTPError as e:
            raise RegistryError(f"Failed to reach registry for {reference}: {e}", code="CONNECTION_ERROR")
        except (ValueError, KeyError) as e:
            raise RegistryError(f"Malformed registry response for {reference}: {e}")

        return ImageLayout(layers=layers, history=build_history(config, sizes))
