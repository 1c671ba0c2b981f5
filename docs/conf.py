# Sphinx configuration file

import os
import sys
sys.path.insert(0, os.path.abspath('../src'))

from multiprotocol_api import __version__  # noqa: E402

project = 'Multi-Protocol API'
copyright = '2025, Multi-Protocol API contributors'
author = 'Multi-Protocol API contributors'
version = '.'.join(__version__.split('.')[:2])
release = __version__

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'
html_title = f'Multi-Protocol API {release}'

# Only the CLI imports uvicorn; docs build without it.
autodoc_mock_imports = ['uvicorn']

# Pydantic models list their fields; private validators and dunder methods stay hidden.
autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'show-inheritance': True,
    'exclude-members': 'model_config, model_fields, model_computed_fields',
}
autodoc_class_signature = 'separated'

typehints_fully_qualified = False
always_document_param_types = False

napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_use_rtype = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
}
