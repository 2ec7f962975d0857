#!/usr/bin/env python3
"""
Client GUI - PyQt6 Chat Application

This module puts the room chat client into a single window.
Features:
- Username selection dialog
- Room list with room creation
- Participant list for the current room
- Chat transcript with formatted messages and cross-room notices
"""

import sys
import asyncio
import threading
from collections import deque
from typing import Any, Callable, List, Optional

# PyQt6 imports
from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QTextBrowser, QLineEdit, QListWidget, QListWidgetItem,
    QMessageBox, QDialog
)
from PyQt6.QtCore import Qt, QThread, pyqtSignal
from PyQt6.QtGui import QFont, QColor, QDesktopServices

from roomchat_common.constants import Events, Messages, PUSH_EVENTS
from roomchat_common.protocol_definitions import ChatMessage, parse_name_list
from roomchat_client.chat.chat_client import ChatClient
from roomchat_client.chat.formatter import escape_html, format_message, format_time
from roomchat_client.chat.session import ClientSession
from roomchat_client.utils.config import ClientConfig
from roomchat_client.utils.logger import logger


BUTTON_STYLE = """
    QPushButton {
        background-color: #3498DB;
        color: white;
        border: none;
        padding: 8px 15px;
        border-radius: 5px;
        font-weight: bold;
    }
    QPushButton:hover {
        background-color: #2980B9;
    }
    QPushButton:pressed {
        background-color: #1F618D;
    }
"""

INPUT_STYLE = """
    QLineEdit {
        background-color: #34495E;
        color: #ECF0F1;
        border: 1px solid #2C3E50;
        border-radius: 5px;
        padding: 5px;
    }
"""

LIST_STYLE = """
    QListWidget {
        background-color: #2C3E50;
        border: 1px solid #34495E;
        border-radius: 5px;
        color: #ECF0F1;
    }
    QListWidget::item {
        padding: 5px;
    }
"""


def _panel_title(text: str) -> QLabel:
    title = QLabel(text)
    title.setFont(QFont("Arial", 12, QFont.Weight.Bold))
    title.setStyleSheet("color: #ECF0F1; padding: 5px;")
    return title


# ============================================================================
# USERNAME DIALOG
# ============================================================================

class UsernameDialog(QDialog):
    """Modal prompt for the username; stays open until the server accepts one."""

    username_chosen = pyqtSignal(str)

    def __init__(self, parent=None, default_username: str = '', connected: bool = False):
        super().__init__(parent)
        self.setWindowTitle("Choose a username")
        self.setModal(True)
        self.setup_ui(default_username)
        self.set_connected(connected)

    def setup_ui(self, default_username: str):
        layout = QVBoxLayout()

        layout.addWidget(QLabel("Pick a username to start chatting"))

        input_layout = QHBoxLayout()
        self.username_input = QLineEdit(default_username)
        self.username_input.setPlaceholderText("Username")
        self.username_input.setStyleSheet(INPUT_STYLE)
        self.username_input.returnPressed.connect(self.submit)
        input_layout.addWidget(self.username_input)

        self.choose_btn = QPushButton("Choose")
        self.choose_btn.setStyleSheet(BUTTON_STYLE)
        self.choose_btn.setAutoDefault(False)
        self.choose_btn.clicked.connect(self.submit)
        input_layout.addWidget(self.choose_btn)
        layout.addLayout(input_layout)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #E74C3C;")
        layout.addWidget(self.error_label)

        self.setLayout(layout)

    def submit(self):
        """Validate locally, then hand the name to the window."""
        name = self.username_input.text().strip()
        if not name:
            self.show_error(Messages.ENTER_USERNAME)
            return
        if not self.choose_btn.isEnabled():
            self.show_error(Messages.CONNECTING)
            return
        self.error_label.setText("")
        self.username_chosen.emit(name)

    def set_connected(self, connected: bool):
        """Choosing a name needs a live connection."""
        self.choose_btn.setEnabled(connected)
        if connected and self.error_label.text() == Messages.CONNECTING:
            self.error_label.setText("")

    def show_error(self, text: str):
        self.error_label.setText(text)


# ============================================================================
# ROOM PANEL
# ============================================================================

class RoomPanel(QWidget):
    """Room list and room creation controls."""

    room_selected = pyqtSignal(str)  # room name
    create_requested = pyqtSignal(str)  # room name

    def __init__(self):
        super().__init__()
        self.rooms: List[str] = []
        self.active_room: Optional[str] = None
        self.setup_ui()

    def setup_ui(self):
        """Setup room panel UI."""
        layout = QVBoxLayout()
        layout.setSpacing(5)
        layout.setContentsMargins(10, 10, 10, 10)

        layout.addWidget(_panel_title("Rooms"))

        self.room_list = QListWidget()
        self.room_list.setStyleSheet(LIST_STYLE)
        self.room_list.setMinimumHeight(100)
        self.room_list.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.room_list)

        create_layout = QHBoxLayout()
        self.new_room_input = QLineEdit()
        self.new_room_input.setPlaceholderText("New room name")
        self.new_room_input.setStyleSheet(INPUT_STYLE)
        self.new_room_input.returnPressed.connect(self.create_room)
        create_layout.addWidget(self.new_room_input)

        self.create_btn = QPushButton("Create")
        self.create_btn.setStyleSheet(BUTTON_STYLE)
        self.create_btn.clicked.connect(self.create_room)
        create_layout.addWidget(self.create_btn)
        layout.addLayout(create_layout)

        self.setLayout(layout)

    def render_rooms(self, rooms: List[str], active_room: Optional[str] = None):
        """Re-render the room list, marking the active room."""
        self.rooms = list(rooms)
        self.active_room = active_room
        self.room_list.clear()

        if not self.rooms:
            placeholder = QListWidgetItem(Messages.NO_ROOMS)
            placeholder.setFlags(Qt.ItemFlag.NoItemFlags)
            placeholder.setForeground(QColor("#7F8C8D"))
            self.room_list.addItem(placeholder)
            return

        for room in self.rooms:
            item = QListWidgetItem(room)
            item.setData(Qt.ItemDataRole.UserRole, room)
            if room == active_room:
                font = item.font()
                font.setBold(True)
                item.setFont(font)
                item.setBackground(QColor("#3498DB"))
            self.room_list.addItem(item)

    def set_active_room(self, room: Optional[str]):
        self.render_rooms(self.rooms, room)

    def clear(self):
        self.rooms = []
        self.active_room = None
        self.room_list.clear()

    def create_room(self):
        name = self.new_room_input.text().strip()
        if not name:
            return
        self.create_requested.emit(name)

    def clear_input(self):
        self.new_room_input.clear()

    def _on_item_clicked(self, item: QListWidgetItem):
        room = item.data(Qt.ItemDataRole.UserRole)
        if room is None:
            return
        self.room_selected.emit(room)


# ============================================================================
# PARTICIPANT PANEL
# ============================================================================

class ParticipantPanel(QWidget):
    """Panel showing the participants of the current room."""

    def __init__(self):
        super().__init__()
        self.participants: List[str] = []
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setSpacing(5)
        layout.setContentsMargins(10, 10, 10, 10)

        layout.addWidget(_panel_title("Participants"))

        self.participant_list = QListWidget()
        self.participant_list.setStyleSheet(LIST_STYLE)
        self.participant_list.setMinimumHeight(100)
        layout.addWidget(self.participant_list)

        self.setLayout(layout)

    def render_participants(self, usernames: List[str], self_username: Optional[str] = None):
        """Replace the list with a fresh set of usernames."""
        self.clear()
        for username in usernames:
            self.participants.append(username)
            item = QListWidgetItem(username)
            if username == self_username:
                item.setText(f"{username} (You)")
                item.setForeground(QColor("#3498DB"))
                font = item.font()
                font.setBold(True)
                item.setFont(font)
            self.participant_list.addItem(item)

    def clear(self):
        self.participants = []
        self.participant_list.clear()


# ============================================================================
# CHAT INTERFACE WIDGET
# ============================================================================

class ChatWidget(QWidget):
    """Chat interface with transcript, cross-room notices and input."""

    message_sent = pyqtSignal(str)  # message text
    leave_requested = pyqtSignal()

    def __init__(self, max_notices: int = 50):
        super().__init__()
        self.transcript: List[ChatMessage] = []
        self.notices = deque(maxlen=max_notices)
        self.setup_ui()

    def setup_ui(self):
        """Setup chat interface UI."""
        layout = QVBoxLayout()
        layout.setSpacing(5)
        layout.setContentsMargins(5, 5, 5, 5)

        # Room header
        header_layout = QHBoxLayout()
        header_text = QVBoxLayout()
        self.current_room_label = QLabel(Messages.NOT_IN_ROOM)
        self.current_room_label.setFont(QFont("Arial", 12, QFont.Weight.Bold))
        header_text.addWidget(self.current_room_label)
        self.room_status_label = QLabel(Messages.ROOM_STATUS_IDLE)
        self.room_status_label.setStyleSheet("color: #95A5A6;")
        header_text.addWidget(self.room_status_label)
        header_layout.addLayout(header_text)
        header_layout.addStretch()

        self.leave_btn = QPushButton("Leave")
        self.leave_btn.setStyleSheet(BUTTON_STYLE.replace("#3498DB", "#E74C3C"))
        self.leave_btn.clicked.connect(self.leave_requested)
        header_layout.addWidget(self.leave_btn)
        layout.addLayout(header_layout)

        # Transcript; links are opened by us, never navigated in place
        self.chat_text = QTextBrowser()
        self.chat_text.setReadOnly(True)
        self.chat_text.setOpenLinks(False)
        self.chat_text.setOpenExternalLinks(False)
        self.chat_text.setStyleSheet("""
            QTextBrowser {
                background-color: #2C2C2C;
                color: #ECF0F1;
                border: 1px solid #34495E;
                border-radius: 5px;
                padding: 5px;
                font-size: 10pt;
            }
        """)
        self.chat_text.anchorClicked.connect(self._on_anchor_clicked)
        layout.addWidget(self.chat_text, stretch=1)

        # Messages from other rooms
        self.notice_text = QTextBrowser()
        self.notice_text.setReadOnly(True)
        self.notice_text.setOpenLinks(False)
        self.notice_text.setMaximumHeight(90)
        self.notice_text.setStyleSheet("""
            QTextBrowser {
                background-color: #232F3A;
                color: #BDC3C7;
                border: 1px solid #34495E;
                border-radius: 5px;
                padding: 3px;
                font-size: 9pt;
            }
        """)
        self.notice_text.anchorClicked.connect(self._on_anchor_clicked)
        layout.addWidget(self.notice_text)

        # Input area
        input_layout = QHBoxLayout()

        self.input_field = QLineEdit()
        self.input_field.setPlaceholderText("Type a message... (**bold**, *italic*)")
        self.input_field.setStyleSheet(INPUT_STYLE)
        self.input_field.returnPressed.connect(self.send_message)
        input_layout.addWidget(self.input_field)

        send_btn = QPushButton("Send")
        send_btn.clicked.connect(self.send_message)
        send_btn.setStyleSheet(BUTTON_STYLE)
        input_layout.addWidget(send_btn)

        layout.addLayout(input_layout)
        self.setLayout(layout)

    def send_message(self):
        """Emit the trimmed input; it is cleared once the server accepts it."""
        text = self.input_field.text().strip()
        if text:
            self.message_sent.emit(text)

    def clear_input(self):
        self.input_field.clear()

    def set_room(self, room: str):
        self.current_room_label.setText(room)
        self.room_status_label.setText(Messages.ROOM_STATUS_CONNECTED.format(room=room))

    def reset_room(self):
        self.current_room_label.setText(Messages.NOT_IN_ROOM)
        self.room_status_label.setText(Messages.ROOM_STATUS_IDLE)

    def set_status(self, text: str):
        self.room_status_label.setText(text)

    def add_message(self, message: ChatMessage, mine: bool = False):
        """Append a message of the current room to the transcript."""
        self.transcript.append(message)
        color = "#2ECC71" if mine else "#3498DB"
        meta = f"{escape_html(message.username)} • {format_time(message.timestamp)}"
        self.chat_text.append(
            f'<div class="msg{" mine" if mine else ""}">'
            f'<span style="color: {color}; font-size: 8pt;">{meta}</span><br/>'
            f'{format_message(message.text)}</div>'
        )

        # Auto scroll to bottom
        scrollbar = self.chat_text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def add_notice(self, message: ChatMessage):
        """Show a one-line notice for a message from another room."""
        self.notices.append(message)
        self.notice_text.setHtml("<br/>".join(self._notice_html(m) for m in self.notices))
        scrollbar = self.notice_text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    @staticmethod
    def _notice_html(message: ChatMessage) -> str:
        return (
            f'<span style="color: #95A5A6;">{escape_html(message.room)} • '
            f'{format_time(message.timestamp)}</span> '
            f'<strong>{escape_html(message.username)}:</strong> {format_message(message.text)}'
        )

    def add_system_message(self, text: str):
        """Status line in the transcript view; not part of the transcript."""
        self.chat_text.append(f'<span style="color: #95A5A6;">{escape_html(text)}</span>')

    def clear_messages(self):
        self.transcript.clear()
        self.chat_text.clear()

    def clear_notices(self):
        self.notices.clear()
        self.notice_text.clear()

    def _on_anchor_clicked(self, url):
        """Open http(s) links in the system browser."""
        if url.scheme() in ("http", "https"):
            QDesktopServices.openUrl(url)
        else:
            logger.warning(f"Ignoring link with unsupported scheme: {url.toString()}")


# ============================================================================
# MAIN WINDOW
# ============================================================================

class ClientMainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, config: Optional[ClientConfig] = None, session: Optional[ClientSession] = None):
        super().__init__()
        self.config = config or ClientConfig()
        self.session = session or ClientSession()

        # Networking components
        self.network_thread = None
        self.server_connected = False
        self.username_dialog = None

        self.setup_ui()
        self.setup_connections()

    def setup_ui(self):
        """Setup the main window UI."""
        self.setWindowTitle("RoomChat")
        self.setGeometry(100, 100, 1100, 700)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout()
        main_layout.setSpacing(5)
        main_layout.setContentsMargins(10, 10, 10, 10)

        self.my_username_label = QLabel("")
        self.my_username_label.setStyleSheet("color: #3498DB; font-weight: bold; padding: 5px;")
        main_layout.addWidget(self.my_username_label)

        body = QHBoxLayout()
        self.room_panel = RoomPanel()
        body.addWidget(self.room_panel, stretch=1)

        self.chat_widget = ChatWidget(max_notices=self.config.max_notices)
        body.addWidget(self.chat_widget, stretch=3)

        self.participant_panel = ParticipantPanel()
        body.addWidget(self.participant_panel, stretch=1)

        main_layout.addLayout(body)
        central_widget.setLayout(main_layout)

        self.apply_dark_theme()

    def setup_connections(self):
        """Setup signal-slot connections."""
        self.chat_widget.message_sent.connect(self.on_send_message)
        self.chat_widget.leave_requested.connect(self.on_leave_room)
        self.room_panel.room_selected.connect(self.on_room_selected)
        self.room_panel.create_requested.connect(self.on_create_room)

    def apply_dark_theme(self):
        """Apply dark theme styling."""
        self.setStyleSheet("""
            QMainWindow {
                background-color: #1A1A1A;
            }
            QWidget {
                background-color: #1A1A1A;
                color: #ECF0F1;
            }
        """)

    def show_alert(self, text: str):
        """Blocking alert, used for every refused request."""
        QMessageBox.warning(self, "RoomChat", text)

    # ========================================================================
    # CONNECTION & NETWORKING
    # ========================================================================

    def connect_to_server(self):
        """Start the network thread and ask for a username."""
        self.chat_widget.add_system_message(f"Connecting to {self.config.server_url}...")
        self.setWindowTitle("RoomChat - Connecting...")

        self.network_thread = NetworkThread(self.config)
        self.network_thread.event_received.connect(self.handle_event)
        self.network_thread.ack_received.connect(self._deliver_result)
        self.network_thread.connected.connect(self.on_connected)
        self.network_thread.disconnected.connect(self.on_disconnected)
        self.network_thread.connection_failed.connect(self.on_connection_failed)
        self.network_thread.request_failed.connect(self.on_request_failed)
        self.network_thread.start()

        self.show_username_dialog()
        return True

    def _shutdown_network(self):
        """Stop the network thread; nothing it emits afterwards reaches us."""
        thread = self.network_thread
        self.network_thread = None
        self.server_connected = False
        if thread is None:
            return
        thread.blockSignals(True)
        thread.stop()
        if not thread.wait(2000):
            logger.warning("Network thread did not exit, forcing termination")
            thread.terminate()
            thread.wait(1000)

    def request(self, operation: str, *args, on_result: Optional[Callable[[Any], None]] = None) -> bool:
        """Send a request through the network thread."""
        if not self.network_thread:
            logger.warning(f"Dropping '{operation}': no connection")
            return False
        self.network_thread.call(operation, *args, on_result=on_result)
        return True

    def _deliver_result(self, handler: Callable[[Any], None], result: Any):
        """Run an acknowledgment handler on the GUI thread."""
        try:
            handler(result)
        except Exception as e:
            logger.log_error("acknowledgment handler", e)

    def on_connected(self):
        self.chat_widget.add_system_message("Connected to server")
        self.setWindowTitle("RoomChat (Connected)")
        self._set_connected(True)

    def on_disconnected(self):
        logger.log_disconnect()
        self._set_connected(False)
        self.chat_widget.set_status(Messages.DISCONNECTED)
        self.setWindowTitle("RoomChat (Disconnected)")

    def on_connection_failed(self, error: str):
        self._set_connected(False)
        self.chat_widget.set_status(Messages.DISCONNECTED)
        self.show_alert(f"Could not connect to {self.config.server_url}\n\n{error}")

    def on_request_failed(self, operation: str, error: str):
        if operation == Events.CHOOSE_USERNAME and self.username_dialog is not None:
            self.username_dialog.show_error(f"Could not choose username: {error}")
            return
        self.chat_widget.add_system_message(f"{operation} failed: {error}")

    def _set_connected(self, connected: bool):
        self.server_connected = connected
        if self.username_dialog is not None:
            self.username_dialog.set_connected(connected)

    def handle_event(self, event: str, payload: Any):
        """Handle a push from the server."""
        try:
            if event == Events.ROOMS_LIST:
                rooms = parse_name_list(payload)
                logger.log_rooms(rooms)
                self.room_panel.render_rooms(rooms, self.session.current_room)

            elif event == Events.PARTICIPANTS:
                participants = parse_name_list(payload)
                logger.log_participants(self.session.current_room, participants)
                self.participant_panel.render_participants(participants, self.session.username)

            elif event == Events.MESSAGE:
                self.handle_chat_message(payload)

            elif event == Events.USERNAME_TAKEN_DISCONNECT:
                self.handle_forced_disconnect(payload)

            else:
                logger.debug(f"Ignoring unknown event '{event}'")
        except Exception as e:
            logger.log_error(f"handling '{event}'", e)

    def handle_chat_message(self, payload: Any):
        """Current-room messages go to the transcript, others become notices."""
        message = ChatMessage.from_payload(payload)
        if self.session.is_current_room(message.room):
            self.chat_widget.add_message(message, mine=self.session.is_mine(message))
        else:
            self.chat_widget.add_notice(message)

    def handle_forced_disconnect(self, reason: Any):
        text = reason if isinstance(reason, str) and reason else Messages.USERNAME_TAKEN
        logger.log_forced_disconnect(text)
        self.show_alert(text)
        self.reload_client()

    def reload_client(self):
        """Throw away all state and start over with a fresh connection."""
        if self.username_dialog is not None:
            self.username_dialog.blockSignals(True)
            self.username_dialog.accept()
            self.username_dialog = None
        self._shutdown_network()
        self.session.reset()
        self.reset_ui()
        self.connect_to_server()

    def reset_ui(self):
        self.my_username_label.setText("")
        self.room_panel.clear()
        self.room_panel.clear_input()
        self.participant_panel.clear()
        self.chat_widget.reset_room()
        self.chat_widget.clear_messages()
        self.chat_widget.clear_notices()
        self.chat_widget.clear_input()

    # ========================================================================
    # USER ACTIONS
    # ========================================================================

    def show_username_dialog(self):
        self.username_dialog = UsernameDialog(self, self.config.username or '', connected=self.server_connected)
        self.username_dialog.username_chosen.connect(self.choose_username)
        self.username_dialog.rejected.connect(self.close)
        self.username_dialog.open()

    def choose_username(self, name: str):
        self.request(Events.CHOOSE_USERNAME, name,
                     on_result=lambda ack: self._on_username_ack(name, ack))

    def _on_username_ack(self, name: str, ack):
        logger.log_username(name, ack.ok, ack.error)
        if not ack.ok:
            if self.username_dialog is not None:
                self.username_dialog.show_error(ack.error or Messages.USERNAME_UNAVAILABLE)
            return

        self.session.choose_username(name)
        self.my_username_label.setText(f"You: {name}")
        self.setWindowTitle(f"RoomChat - {name}")
        if self.username_dialog is not None:
            self.username_dialog.blockSignals(True)
            self.username_dialog.accept()
            self.username_dialog = None
        self.request(Events.GET_ROOMS)

    def on_create_room(self, name: str):
        self.request(Events.CREATE_ROOM, name,
                     on_result=lambda ack: self._on_create_room_ack(name, ack))

    def _on_create_room_ack(self, name: str, ack):
        if not ack.ok:
            logger.log_request_failed(Events.CREATE_ROOM, ack.error)
            self.show_alert(ack.error or Messages.CREATE_ROOM_FAILED)
            return
        logger.log_room_created(name)
        self.room_panel.clear_input()
        self.join_room(name)

    def on_room_selected(self, room: str):
        if self.session.is_current_room(room):
            return
        self.join_room(room)

    def join_room(self, room: str):
        if not self.session.has_username:
            self.show_alert(Messages.CHOOSE_USERNAME_FIRST)
            return
        self.request(Events.JOIN_ROOM, room,
                     on_result=lambda ack: self._on_join_ack(room, ack))

    def _on_join_ack(self, room: str, ack):
        if not ack.ok:
            logger.log_request_failed(Events.JOIN_ROOM, ack.error)
            self.show_alert(ack.error or Messages.JOIN_ROOM_FAILED)
            return

        self.session.enter_room(room)
        logger.log_room_joined(room)
        self.chat_widget.set_room(room)
        self.chat_widget.clear_messages()
        self.participant_panel.clear()
        self.room_panel.set_active_room(room)

        self.request(Events.GET_PARTICIPANTS, room)
        self.request(Events.GET_HISTORY, room,
                     on_result=lambda history: self._on_history(room, history))

    def _on_history(self, room: str, history: List[ChatMessage]):
        if not self.session.is_current_room(room):
            return
        for message in history:
            self.chat_widget.add_message(message, mine=self.session.is_mine(message))

    def on_send_message(self, text: str):
        if not self.session.in_room:
            self.show_alert(Messages.JOIN_ROOM_FIRST)
            return
        room = self.session.current_room
        self.request(Events.SEND_MESSAGE, room, text,
                     on_result=lambda ack: self._on_send_ack(room, text, ack))

    def _on_send_ack(self, room: str, text: str, ack):
        if not ack.ok:
            logger.log_request_failed(Events.SEND_MESSAGE, ack.error)
            self.show_alert(ack.error or Messages.MESSAGE_NOT_DELIVERED)
            return
        if self.session.is_current_room(room):
            message = ChatMessage(username=self.session.username, text=text, timestamp=ack.ts, room=room)
            self.chat_widget.add_message(message, mine=True)
        self.chat_widget.clear_input()

    def on_leave_room(self):
        if not self.session.in_room:
            return
        room = self.session.leave_room()
        self.request(Events.LEAVE_ROOM, room)
        logger.log_room_left(room)
        self.chat_widget.reset_room()
        self.chat_widget.clear_messages()
        self.participant_panel.clear()
        self.room_panel.set_active_room(None)

    # ========================================================================
    # CLEANUP
    # ========================================================================

    def closeEvent(self, event):
        """Handle window close event."""
        self._shutdown_network()
        event.accept()


# ============================================================================
# NETWORK THREAD
# ============================================================================

class NetworkThread(QThread):
    """Thread owning the asyncio loop and the Socket.IO connection."""

    event_received = pyqtSignal(str, object)  # event, payload
    ack_received = pyqtSignal(object, object)  # handler, result
    request_failed = pyqtSignal(str, str)  # operation, error
    connected = pyqtSignal()
    disconnected = pyqtSignal()
    connection_failed = pyqtSignal(str)

    def __init__(self, config: ClientConfig, chat_client: Optional[ChatClient] = None):
        super().__init__()
        self.config = config
        self.chat_client = chat_client
        self.running = False
        self.loop = None
        self.loop_ready = threading.Event()

    def run(self):
        """Run network loop."""
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        if self.chat_client is None:
            self.chat_client = ChatClient(reconnection=self.config.reconnection)
        self._register_handlers()
        self.loop_ready.set()
        try:
            self.loop.run_until_complete(self._connect_and_listen())
        finally:
            self.loop.close()
            self.loop_ready.clear()

    def _register_handlers(self):
        for event in PUSH_EVENTS:
            self.chat_client.on(event, self._make_push_handler(event))
        self.chat_client.on(Events.CONNECT, self._on_connect)
        self.chat_client.on(Events.DISCONNECT, self._on_disconnect)

    def _make_push_handler(self, event: str):
        def _handler(*args):
            self.event_received.emit(event, args[0] if args else None)
        return _handler

    def _on_connect(self):
        self.connected.emit()

    def _on_disconnect(self, *args):
        self.disconnected.emit()

    async def _connect_and_listen(self):
        """Connect to server and stay up until the connection ends."""
        self.running = True
        try:
            await self.chat_client.connect(
                self.config.server_url,
                timeout=self.config.connect_timeout,
                socketio_path=self.config.socketio_path
            )
            await self.chat_client.sio.wait()
        except Exception as e:
            logger.log_error("connection", e)
            self.connection_failed.emit(str(e))
        finally:
            self.running = False

    async def _run_request(self, operation: str, args: tuple, on_result: Optional[Callable]):
        try:
            result = await getattr(self.chat_client, operation)(*args)
        except Exception as e:
            logger.log_error(operation, e)
            self.request_failed.emit(operation, str(e))
            return
        if on_result is not None:
            self.ack_received.emit(on_result, result)

    def call(self, operation: str, *args, on_result: Optional[Callable] = None):
        """Schedule a ChatClient operation from the GUI thread.

        Once the connection has ended the loop is closed; the request is
        then reported through request_failed instead of being scheduled.
        """
        if not self._loop_closed() and not self.loop_ready.wait(timeout=5.0):
            self._reject(operation, "event loop not ready")
            return
        if self._loop_closed():
            self._reject(operation, "not connected")
            return

        coro = self._run_request(operation, args, on_result)
        try:
            asyncio.run_coroutine_threadsafe(coro, self.loop)
        except RuntimeError:
            # Loop closed between the check and the submit
            coro.close()
            self._reject(operation, "not connected")

    def _loop_closed(self) -> bool:
        return self.loop is not None and self.loop.is_closed()

    def _reject(self, operation: str, reason: str):
        logger.warning(f"'{operation}' not sent: {reason}")
        self.request_failed.emit(operation, reason)

    def stop(self):
        """Disconnect; the loop ends once the connection is closed."""
        if self.loop and self.running and not self.loop.is_closed():
            asyncio.run_coroutine_threadsafe(self.chat_client.disconnect(), self.loop)
        self.running = False


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def main():
    """Main entry point."""
    app = QApplication(sys.argv)

    window = ClientMainWindow(ClientConfig.from_env())
    window.show()
    window.connect_to_server()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
