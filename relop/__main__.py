from relop.cli.app import main

main()
