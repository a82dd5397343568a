"""Title and body of generated merge-down pull requests."""

PULL_REQUEST_BODY = """\
This pull request was automatically generated from #{number} to ensure that \
the changes introduced into `{base}` by that pull request also make their way \
into the `{target}` branch.

If there are merge conflicts, try merging `{target}` into this branch.
```bash
git fetch origin
git checkout -b {candidate} origin/{candidate}
git merge origin/{target}
# resolve any conflicts
git push origin {candidate}
```
"""


def pull_request_title(head: str, target: str) -> str:
    return f"Merge branch '{head}' into {target}"


def pull_request_body(number: int, base: str, target: str, candidate: str) -> str:
    return PULL_REQUEST_BODY.format(
        number=number, base=base, target=target, candidate=candidate
    )
