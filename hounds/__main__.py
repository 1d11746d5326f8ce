from hounds.cli.app import main

main()
