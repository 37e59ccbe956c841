from mp3_converter.lifecycle import run

if __name__ == "__main__":
    run()
