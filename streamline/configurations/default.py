#############################################################
# rename or copy this file to config.py if you make changes #
#############################################################

# The API token is not stored here.  Put it in the environment variable
# named by "token_env" before starting the editor.

config = {
    # streaming service used for range and single block fetches
    "endpoint": "https://mainnet.eth.streamingfast.io",
    "token_env": "SUBSTREAMS_API_TOKEN",

    # package and module streamed by "run a stream"
    "package": "https://spkg.io/streamingfast/ethereum-explorer-v0.1.2.spkg",
    "module_name": "map_block_meta",
    "start_block": 12292922,
    "stop_block": 12292925,

    # seconds to wait on the streaming service; None waits forever
    "stream_timeout": None,

    # where "write source" puts the generated script
    "source_path": "/tmp/streamline_ide_output.py",

    "log_level": "WARNING",

    # send tracebacks to API clients
    "show_exceptions": False,
}
