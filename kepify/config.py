"""
Defaults for the kepify command. Command line flags override these values.
"""

CONFIG = {
    'default_dir': 'keps',
    'default_output': 'keps.json',
    'document_extension': '.md',
    'boundary_marker': '---',
    'required_fields': ('title', 'owning-sig', 'status'),
    # known non-KEP documents that live alongside the KEPs
    'ignored_filenames': frozenset({
        '0023-documentation-for-images.md',
        '0004-cloud-provider-template.md',
        '0001a-meta-kep-implementation.md',
        '0001-kubernetes-enhancement-proposal-process.md',
        'YYYYMMDD-kep-template.md',
        'README.md',
        'kep-faq.md',
    }),
}
