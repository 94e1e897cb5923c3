"""Bridge layer between ravenpkg and the external tools it drives.

Modules
-------
capabilities
    ``Protocol`` definitions the pipeline depends on.
git
    ``git clone`` / ``git checkout``.
archive
    Tarball extraction with the single-root-directory rule.
http
    Downloads and registry lookups over ``requests``.
gpg
    Detached signing and verification through the ``gpg`` CLI.
shell
    Subprocess plumbing and the build-command runner.
"""
