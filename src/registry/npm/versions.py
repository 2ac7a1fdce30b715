"""NPM version matching using semantic versioning."""

import re
from typing import Iterable, List, Optional

import semantic_version


def include_prerelease(spec: str) -> bool:
    """Pre-releases are only eligible when the spec names one."""
    return any(pre in spec.lower() for pre in ['pre', 'rc', 'alpha', 'beta'])


def _normalize_spec(spec_str: str) -> str:
    """Normalize npm range syntax (hyphen, x-ranges) into SimpleSpec-compatible form."""
    s = spec_str.strip()

    # Hyphen ranges: "1.2.3 - 1.4.5" => ">=1.2.3, <=1.4.5"
    m = re.match(r'^\s*([0-9A-Za-z\.\-\+]+)\s+-\s+([0-9A-Za-z\.\-\+]+)\s*$', s)
    if m:
        left, right = m.group(1), m.group(2)
        return f">={left},<={right}"

    # x-ranges: 1.2.x or 1.x or 1.* -> convert to comparator pairs
    s2 = s.replace('*', 'x').lower()
    m = re.match(r'^\s*(\d+)\.(\d+)\.x\s*$', s2)
    if m:
        major, minor = int(m.group(1)), int(m.group(2))
        return f">={major}.{minor}.0,<{major}.{minor + 1}.0"

    m = re.match(r'^\s*(\d+)\.x\s*$', s2)
    if m:
        major = int(m.group(1))
        return f">={major}.0.0,<{major + 1}.0.0"

    return spec_str


def _parse_spec(spec_str: str):
    """Prefer NpmSpec (native ^, ~, hyphen and x-ranges), falling back to SimpleSpec."""
    try:
        return semantic_version.NpmSpec(spec_str)
    except ValueError:
        return semantic_version.SimpleSpec(_normalize_spec(spec_str))


def pick_matching_version(spec_str: str, candidates: Iterable[str]) -> Optional[str]:
    """Return the highest candidate satisfying ``spec_str``, or None.

    Invalid specs and unparsable candidate versions are ignored rather than
    raised; the caller falls back to the registry's latest tag.
    """
    try:
        spec = _parse_spec(spec_str)
    except ValueError:
        return None

    allow_pre = include_prerelease(spec_str)
    matching: List[semantic_version.Version] = []
    for v in candidates:
        try:
            ver = semantic_version.Version(v)
        except ValueError:
            continue  # Skip invalid versions
        if ver.prerelease and not allow_pre:
            continue
        if spec.match(ver):
            matching.append(ver)

    if not matching:
        return None
    matching.sort(reverse=True)
    return str(matching[0])
