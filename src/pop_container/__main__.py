from pop_container.CLI.main import main

if __name__ == "__main__":
    main()
