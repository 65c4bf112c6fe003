"""
Dataflow architecture for the streamline editor.

A user assembles named processing units (:class:`.core.MapModule` and
:class:`.core.StoreModule`) into a :class:`.core.ModuleGraph`.  Each module
declares its inputs by name, either the name of another module or the
source sentinel *BLOCK* which stands for the raw streamed block.  The
graph is owned by a single thread (:class:`.owner.GraphOwner`) so that edits
and code generation never interleave.

On request the graph is rendered to script text by :func:`.codegen.generate`.
The script is a sequence of registration statements (*add_mfn* for maps,
*add_sfn* for stores), each followed by the module body.  Script evaluation
happens on the execution worker (:class:`.worker.ExecutionWorker`) which
keeps a persistent scope and an accumulated compiled unit so that repeated
builds are additive.  The scripting runtime itself is
:class:`.runtime.ScriptEngine`.

Blocks are fetched by the streaming worker (:class:`.stream.StreamingWorker`)
which runs an asyncio loop on its own thread.  Range fetches forward each
record to the message log.  Single block fetches land in one of four slots
of the :class:`.cache.BlockCache` where they can be bound as arguments to
function evaluation.

The threads talk over three FIFO channels held by :class:`.bus.MessageBus`.
:class:`.session.Editor` ties the pieces together for the presentation
layer.
"""

__version__ = "0.1"
