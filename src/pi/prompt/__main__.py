from pi.prompt.cli import main

main()
