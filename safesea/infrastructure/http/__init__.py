"""HTTP layer: error taxonomy, retry policy, request executor, endpoint selection.

Import from the submodules directly; `safesea.domains.models` depends on
`errors`, and `endpoint_selector` depends on the models.
"""
