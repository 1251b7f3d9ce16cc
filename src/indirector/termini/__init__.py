"""Conventional home of autoloaded termini.

With the default `module` autoload strategy, the terminus `rest` of the terminus type `certificate` is expected in
the module `indirector.termini.certificate.rest`. Plugin distributions may contribute subpackages here, or point
`INDIRECTOR_AUTOLOAD_NAMESPACE` at a package of their own.
"""
