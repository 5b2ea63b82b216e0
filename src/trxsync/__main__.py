from trxsync.presentation.cli.app import cli

cli()
