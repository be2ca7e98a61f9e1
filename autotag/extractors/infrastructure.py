"""Filename and path patterns that imply infrastructure tooling."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Set, Tuple

# (pattern, technology); patterns containing "/" match the tail of the
# relative path, all others match the file name only.
INFRASTRUCTURE_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("Dockerfile", "docker"),
    ("Dockerfile.*", "docker"),
    ("*.Dockerfile", "docker"),
    ("docker-compose*.yml", "docker"),
    ("docker-compose*.yaml", "docker"),
    ("compose.yml", "docker"),
    ("compose.yaml", "docker"),
    ("*.tf", "terraform"),
    ("*.tfvars", "terraform"),
    ("Chart.yaml", "helm"),
    ("kustomization.yaml", "kubernetes"),
    ("kustomization.yml", "kubernetes"),
    ("Jenkinsfile", "jenkins"),
    (".gitlab-ci.yml", "gitlab"),
    (".travis.yml", "travis-ci"),
    (".circleci/config.yml", "circleci"),
    (".github/workflows/*.yml", "github-actions"),
    (".github/workflows/*.yaml", "github-actions"),
    ("vercel.json", "vercel"),
    ("netlify.toml", "netlify"),
    ("Procfile", "heroku"),
    ("serverless.yml", "serverless"),
    ("serverless.yaml", "serverless"),
    ("nginx.conf", "nginx"),
    ("Vagrantfile", "vagrant"),
    ("ansible.cfg", "ansible"),
    ("wrangler.toml", "cloudflare"),
    ("firebase.json", "firebase"),
    ("Makefile", "make"),
    ("CMakeLists.txt", "cmake"),
)


def detect_infrastructure(rel_path: str) -> Set[str]:
    """Return infrastructure technologies implied by a repository-relative path."""
    name = rel_path.rsplit("/", 1)[-1]
    found: Set[str] = set()
    for pattern, technology in INFRASTRUCTURE_PATTERNS:
        if "/" in pattern:
            matched = fnmatchcase(rel_path, pattern) or fnmatchcase(rel_path, f"*/{pattern}")
        else:
            matched = fnmatchcase(name, pattern)
        if matched:
            found.add(technology)
    return found


__all__ = ["INFRASTRUCTURE_PATTERNS", "detect_infrastructure"]
