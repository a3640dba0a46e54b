from bookpipe.cli.app import main

main()
